from __future__ import annotations
from typing import Optional, Sequence, Union

from mockup.models import ConstraintMetrics, DetectedRegion, EdgeDistances, Point


class MetricsCalculator:
    """Secondary geometry of a selected region for diagnostics; never gates validity."""

    @staticmethod
    def calculate(regions: Union[DetectedRegion, Sequence[DetectedRegion], None],
                  image_w: int, image_h: int) -> ConstraintMetrics:
        """Metrics of the largest region; the fragment count is how many regions were given."""
        if regions is None:
            regions = ()
        elif isinstance(regions, DetectedRegion):
            regions = (regions,)
        selected: Optional[DetectedRegion] = max(
            regions, key=lambda r: r.pixel_count, default=None
        )
        if selected is None:
            return ConstraintMetrics(
                edge_distances=EdgeDistances(0, 0, 0, 0),
                center_offset=Point(0.0, 0.0),
                compactness=0.0,
                fragment_count=0,
                total_area=0,
                aspect_ratio=0.0,
            )

        box = selected.bbox
        return ConstraintMetrics(
            edge_distances=EdgeDistances(
                top=box.y,
                right=image_w - box.right,
                bottom=image_h - box.bottom,
                left=box.x,
            ),
            center_offset=Point(
                round(selected.center.x - image_w / 2.0, 2),
                round(selected.center.y - image_h / 2.0, 2),
            ),
            compactness=round(selected.pixel_count / float(box.area), 4),
            fragment_count=len(regions),
            total_area=sum(r.pixel_count for r in regions),
            aspect_ratio=selected.aspect_ratio,
        )

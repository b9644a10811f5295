"""Constraint validation for detected placement regions.

Size, shape and position problems never raise: each becomes a
`ValidationIssue` with a warning code, a paired recommendation and a score
penalty. Only a region under the minimum size is blocking; it still gets a
shrunk usable area so callers may override the verdict.
"""
from __future__ import annotations
import logging
import math
from typing import List, Optional

from mockup.models import (
    BoundingBox, DetectedRegion, UsableArea, ValidationIssue, ValidationResult,
)
from mockup.settings import ConstraintDimensions, PlacementType

logger = logging.getLogger(__name__)

VALID_SCORE_THRESHOLD = 0.5
SMALL_AREA_PERCENT = 5.0
LARGE_AREA_PERCENT = 50.0
LOW_QUALITY = 0.3
OFF_CENTER_RATIO = 0.3
EDGE_MARGIN = {PlacementType.HORIZONTAL: 15, PlacementType.VERTICAL: 15, PlacementType.ALL_OVER: 5}


class ConstraintValidator:
    """Checks a detected region against caller size rules and scores it."""

    @staticmethod
    def usable_area(region: DetectedRegion, dims: ConstraintDimensions) -> Optional[UsableArea]:
        """Largest rectangle centered on the centroid inside the bbox, capped at the max size."""
        box = region.bbox
        cx, cy = region.center.x, region.center.y
        half_w = min(cx - box.x, box.right - cx)
        half_h = min(cy - box.y, box.bottom - cy)
        width = min(int(math.floor(2 * half_w)), dims.max_width)
        height = min(int(math.floor(2 * half_h)), dims.max_height)
        if width < 1 or height < 1:
            return None

        x = int(round(cx - width / 2.0))
        y = int(round(cy - height / 2.0))
        x = max(box.x, min(x, box.right - width))
        y = max(box.y, min(y, box.bottom - height))
        bounds = BoundingBox(x, y, width, height)
        return UsableArea(
            bounds=bounds,
            pixels=bounds.area,
            percentage=round(bounds.area / float(box.area) * 100.0, 2),
        )

    @staticmethod
    def _size_issues(region: DetectedRegion, dims: ConstraintDimensions) -> List[ValidationIssue]:
        box = region.bbox
        issues = []
        if box.width < dims.min_width:
            issues.append(ValidationIssue(
                "width_below_minimum",
                f"Detected area width ({box.width}px) is smaller than minimum required ({dims.min_width}px)",
                "Widen the marked area or lower the minimum width for this product",
                0.2, blocking=True,
            ))
        if box.height < dims.min_height:
            issues.append(ValidationIssue(
                "height_below_minimum",
                f"Detected area height ({box.height}px) is smaller than minimum required ({dims.min_height}px)",
                "Make the marked area taller or lower the minimum height for this product",
                0.2, blocking=True,
            ))
        if box.width > dims.max_width:
            issues.append(ValidationIssue(
                "width_above_maximum",
                f"Detected area width ({box.width}px) exceeds maximum ({dims.max_width}px)",
                "The usable area was narrowed to the maximum width around the centroid",
                0.1,
            ))
        if box.height > dims.max_height:
            issues.append(ValidationIssue(
                "height_above_maximum",
                f"Detected area height ({box.height}px) exceeds maximum ({dims.max_height}px)",
                "The usable area was shortened to the maximum height around the centroid",
                0.1,
            ))
        if region.percentage < SMALL_AREA_PERCENT:
            issues.append(ValidationIssue(
                "area_very_small",
                f"Detected area is very small ({region.percentage}% of image)",
                "Consider increasing the size of the marked area",
                0.15,
            ))
        elif region.percentage > LARGE_AREA_PERCENT:
            issues.append(ValidationIssue(
                "area_very_large",
                f"Detected area is very large ({region.percentage}% of image)",
                "Consider reducing the marked area to be more specific",
                0.1,
            ))
        return issues

    @staticmethod
    def _aspect_issue(region: DetectedRegion, placement: PlacementType) -> Optional[ValidationIssue]:
        ratio = region.aspect_ratio
        if placement is PlacementType.HORIZONTAL and ratio < 0.5:
            return ValidationIssue(
                "aspect_ratio_mismatch",
                f"Horizontal placement area is too tall/narrow for typical logos (aspect {ratio:.2f})",
                "Make the marked area wider for horizontal logo placement",
                0.1,
            )
        if placement is PlacementType.VERTICAL and ratio > 2.0:
            return ValidationIssue(
                "aspect_ratio_mismatch",
                f"Vertical placement area is too wide for typical logos (aspect {ratio:.2f})",
                "Make the marked area taller/narrower for vertical logo placement",
                0.1,
            )
        return None

    @staticmethod
    def _edge_issues(box: BoundingBox, image_w: int, image_h: int,
                     placement: PlacementType) -> List[ValidationIssue]:
        margin = EDGE_MARGIN[placement]
        distances = (
            ("top", box.y),
            ("right", image_w - box.right),
            ("bottom", image_h - box.bottom),
            ("left", box.x),
        )
        return [
            ValidationIssue(
                f"near_edge_{edge}",
                f"Marked area is very close to {edge} edge ({distance}px)",
                f"Move the marked area at least {margin}px away from the {edge} edge",
                0.05,
            )
            for edge, distance in distances if distance < margin
        ]

    @staticmethod
    def _position_issue(region: DetectedRegion, image_w: int, image_h: int,
                        placement: PlacementType) -> Optional[ValidationIssue]:
        offset_x = abs(region.center.x - image_w / 2.0)
        offset_y = abs(region.center.y - image_h / 2.0)
        if placement is PlacementType.HORIZONTAL and offset_y > image_h * OFF_CENTER_RATIO:
            return ValidationIssue(
                "off_center",
                "Horizontal placement area is positioned too far from center vertically",
                "Position the marked area closer to the vertical center",
                0.1,
            )
        if placement is PlacementType.VERTICAL and offset_x > image_w * OFF_CENTER_RATIO:
            return ValidationIssue(
                "off_center",
                "Vertical placement area is positioned too far from center horizontally",
                "Position the marked area closer to the horizontal center",
                0.1,
            )
        return None

    @staticmethod
    def validate(region: DetectedRegion, dims: ConstraintDimensions, image_w: int, image_h: int,
                 placement_type="horizontal", fragment_count: int = 1) -> ValidationResult:
        placement = PlacementType.parse(placement_type)
        if region is None or region.pixel_count == 0:
            return ValidationResult(
                is_valid=False, score=0.0,
                warnings=("no_region",),
                recommendations=("Ensure the template has a clearly marked placement area",),
                usable_area=None,
                issues=(ValidationIssue(
                    "no_region", "No marked area detected in the image",
                    "Ensure the template has a clearly marked placement area", 1.0, blocking=True,
                ),),
            )

        issues = ConstraintValidator._size_issues(region, dims)
        aspect = ConstraintValidator._aspect_issue(region, placement)
        if aspect:
            issues.append(aspect)
        issues.extend(ConstraintValidator._edge_issues(region.bbox, image_w, image_h, placement))
        if region.confidence < LOW_QUALITY:
            issues.append(ValidationIssue(
                "low_quality",
                "Low detection quality; the marked area may be fragmented or unclear",
                "Use a more solid, well-defined marker color",
                0.15,
            ))
        if fragment_count > 1:
            issues.append(ValidationIssue(
                "fragmented",
                f"Multiple separate marked areas detected ({fragment_count} areas)",
                "Use a single, continuous marked area for better results",
                0.1,
            ))
        position = ConstraintValidator._position_issue(region, image_w, image_h, placement)
        if position:
            issues.append(position)

        usable = ConstraintValidator.usable_area(region, dims)
        score = max(0.0, min(1.0, 1.0 - sum(i.penalty for i in issues)))
        blocked = any(i.blocking for i in issues)
        is_valid = score > VALID_SCORE_THRESHOLD and usable is not None and not blocked

        logger.debug("Validated region %s: score=%.2f valid=%s warnings=%s",
                     region.bbox.as_tuple(), score, is_valid, [i.code for i in issues])
        return ValidationResult(
            is_valid=is_valid,
            score=round(score, 4),
            warnings=tuple(i.code for i in issues),
            recommendations=tuple(_unique(i.recommendation for i in issues)),
            usable_area=usable,
            issues=tuple(issues),
        )

    @staticmethod
    def recommendations_for(region: DetectedRegion, result: ValidationResult,
                            placement_type="horizontal", fragment_count: int = 1) -> List[str]:
        """Validation recommendations plus general advice for the placement style."""
        placement = PlacementType.parse(placement_type)
        recs = list(result.recommendations)
        if region.confidence < 0.5:
            recs.append("Use a brighter, more saturated marker color (#00FF00 recommended)")
            recs.append("Ensure the marked area has clean, solid edges")
        if region.percentage < 10:
            recs.append("Consider increasing the size of the marked area for better logo visibility")
        if fragment_count > 1:
            recs.append("Use a single, continuous marked shape rather than multiple separate areas")
        recs.append({
            PlacementType.HORIZONTAL: "For horizontal placement, ensure the marked area is wide enough for typical logo proportions",
            PlacementType.VERTICAL: "For vertical placement, ensure the marked area is tall enough for stacked logos",
            PlacementType.ALL_OVER: "For all-over patterns, mark the entire printable area",
        }[placement])
        return _unique(recs)

    @staticmethod
    def build_report(result: ValidationResult) -> str:
        lines = [
            "=== CONSTRAINT VALIDATION REPORT ===",
            f"Status: {'VALID' if result.is_valid else 'INVALID'}",
            f"Score: {result.score * 100:.1f}%",
        ]
        if result.usable_area:
            b = result.usable_area.bounds
            lines.append(f"Usable area: {b.width}x{b.height}px at ({b.x}, {b.y})")
        else:
            lines.append("Usable area: none")
        if result.issues:
            lines += ["", "--- ISSUES ---"]
            for issue in result.issues:
                tag = "BLOCKING" if issue.blocking else "warning"
                lines.append(f"[{tag}] {issue.code}: {issue.message}")
        if result.recommendations:
            lines += ["", "--- RECOMMENDATIONS ---"]
            lines += [f"- {rec}" for rec in result.recommendations]
        return "\n".join(lines)


def _unique(items) -> List[str]:
    seen = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen

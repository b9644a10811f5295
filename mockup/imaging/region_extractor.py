from __future__ import annotations
from typing import List, Optional, Tuple

import cv2
import numpy as np

from mockup.imaging.color_classifier import ColorClassifier
from mockup.models import BoundingBox, DetectedRegion, HSVColor, Point
from mockup.services.deadline import Deadline

CONNECTIVITY = 4
FILL_WEIGHT = 0.6
SOLIDITY_WEIGHT = 0.4
SAMPLE_STRIDE = 16
DOMINANT_COLOR_COUNT = 5


class RegionExtractor:
    """Connected-component labeling of a binary mask into scored regions."""

    @staticmethod
    def solidity(component: np.ndarray, fallback: float) -> float:
        """Contour area over convex hull area; `fallback` for degenerate shapes."""
        padded = cv2.copyMakeBorder(component, 1, 1, 1, 1, cv2.BORDER_CONSTANT, value=0)
        cnts, _ = cv2.findContours(padded, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        if not cnts:
            return fallback
        contour = max(cnts, key=cv2.contourArea)
        hull_area = cv2.contourArea(cv2.convexHull(contour))
        if hull_area <= 0:
            return fallback
        return min(1.0, cv2.contourArea(contour) / hull_area)

    @staticmethod
    def extract(mask: np.ndarray, min_area: int, max_area: int,
                deadline: Optional[Deadline] = None) -> List[DetectedRegion]:
        deadline = deadline or Deadline.never()
        img_h, img_w = mask.shape[:2]
        image_area = float(img_w * img_h)

        n, labels, stats, centroids = cv2.connectedComponentsWithStats(
            mask, connectivity=CONNECTIVITY
        )
        deadline.check("labeling")

        regions: List[DetectedRegion] = []
        for label in range(1, n):  # 0 is background
            area = int(stats[label, cv2.CC_STAT_AREA])
            if area < min_area or area > max_area:
                continue
            deadline.check("region scoring")

            x = int(stats[label, cv2.CC_STAT_LEFT])
            y = int(stats[label, cv2.CC_STAT_TOP])
            w = int(stats[label, cv2.CC_STAT_WIDTH])
            h = int(stats[label, cv2.CC_STAT_HEIGHT])
            fill = area / float(w * h)

            component = np.where(labels[y:y + h, x:x + w] == label, 255, 0).astype(np.uint8)
            solidity = RegionExtractor.solidity(component, fallback=fill)
            confidence = min(1.0, max(0.0, FILL_WEIGHT * fill + SOLIDITY_WEIGHT * solidity))

            cx, cy = centroids[label]
            regions.append(DetectedRegion(
                pixel_count=area,
                bbox=BoundingBox(x, y, w, h),
                percentage=round(area / image_area * 100.0, 2),
                centroid=Point(round(float(cx), 2), round(float(cy), 2)),
                aspect_ratio=round(w / float(h), 4),
                confidence=round(confidence, 4),
                fill_ratio=round(fill, 4),
            ))

        regions.sort(key=lambda r: (-r.pixel_count, r.bbox.y, r.bbox.x))
        return regions

    @staticmethod
    def dominant_colors(rgba: np.ndarray, opacity_floor: int = 128,
                        top: int = DOMINANT_COLOR_COUNT) -> Tuple[HSVColor, ...]:
        """Most frequent HSV buckets (10 deg / 20 % / 20 %) over a sparse pixel sample."""
        flat = rgba.reshape(-1, 4)[::SAMPLE_STRIDE]
        flat = flat[flat[:, 3] >= opacity_floor]
        if flat.size == 0:
            return ()
        hsv = ColorClassifier.to_hsv(flat[np.newaxis, :, :])[0]
        buckets = np.stack([
            np.floor(hsv[:, 0] / 10.0 + 0.5) * 10.0,
            np.floor(hsv[:, 1] / 20.0 + 0.5) * 20.0,
            np.floor(hsv[:, 2] / 20.0 + 0.5) * 20.0,
        ], axis=1)
        keys, counts = np.unique(buckets, axis=0, return_counts=True)
        # np.unique sorts keys, so a stable sort on counts keeps ties deterministic
        order = np.argsort(-counts, kind="stable")[:top]
        return tuple(HSVColor(float(keys[i, 0]), float(keys[i, 1]), float(keys[i, 2]))
                     for i in order)

"""Shape and speed gates applied to blob candidates before scoring."""

from __future__ import annotations

from typing import Optional

from detect.config import FilterConfig
from detect.types import BlobDetection


def _within(value: float, low: float, high: Optional[float]) -> bool:
    return value >= low and (high is None or value <= high)


def passes_filters(det: BlobDetection, config: FilterConfig) -> bool:
    if not _within(det.area, config.min_area, config.max_area):
        return False
    if not _within(det.circularity, config.min_circularity, config.max_circularity):
        return False
    # Blobs without a velocity yet are kept until the tracker can judge them
    if det.velocity is not None and not _within(det.velocity, config.min_velocity, config.max_velocity):
        return False
    return True


def apply_filters(detections: list[BlobDetection], config: FilterConfig) -> list[BlobDetection]:
    return [det for det in detections if passes_filters(det, config)]


def apply_radius_filter(
    detections: list[BlobDetection], min_radius: float, max_radius: float
) -> list[BlobDetection]:
    return [det for det in detections if min_radius <= det.equivalent_radius <= max_radius]

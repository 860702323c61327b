from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from contracts import BallDetection
from detect.utils import Component, circularity


@dataclass
class BlobDetection:
    centroid: tuple[float, float]
    area: int
    perimeter: int
    bbox: tuple[int, int, int, int]
    circularity: float
    velocity: float | None = None
    radius: float | None = None

    @property
    def equivalent_radius(self) -> float:
        if self.radius is not None:
            return self.radius
        return math.sqrt(self.area / math.pi) if self.area > 0 else 0.0

    def scaled(self, factor: float) -> "BlobDetection":
        """Map the blob from a working scale back to the source frame."""
        if factor == 1.0:
            return self
        x, y = self.centroid
        bx1, by1, bx2, by2 = self.bbox
        return BlobDetection(
            centroid=(x * factor, y * factor),
            area=int(round(self.area * factor * factor)),
            perimeter=int(round(self.perimeter * factor)),
            bbox=(
                int(bx1 * factor),
                int(by1 * factor),
                int(bx2 * factor),
                int(by2 * factor),
            ),
            circularity=self.circularity,
            velocity=self.velocity,
            radius=self.radius * factor if self.radius is not None else None,
        )


def components_to_blobs(components: list[Component]) -> list[BlobDetection]:
    return [
        BlobDetection(
            centroid=comp.centroid,
            area=comp.area,
            perimeter=comp.perimeter,
            bbox=comp.bbox,
            circularity=circularity(comp.area, comp.perimeter),
        )
        for comp in components
    ]


def to_ball_detection(
    blob: BlobDetection,
    source: str,
    confidence: float,
    frame_index: int = 0,
    velocity: Optional[tuple[float, float]] = None,
    track_id: Optional[int] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> BallDetection:
    vx, vy = velocity if velocity is not None else (None, None)
    return BallDetection(
        x=float(blob.centroid[0]),
        y=float(blob.centroid[1]),
        radius=float(blob.equivalent_radius),
        confidence=float(min(1.0, max(confidence, 0.0))),
        source=source,
        velocity_x=vx,
        velocity_y=vy,
        frame_index=frame_index,
        track_id=track_id,
        extras=dict(extras) if extras else {},
    )

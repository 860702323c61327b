"""Core data contracts for frames, detections, targets and goal geometry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, x: float, y: float, margin: float = 0.0) -> bool:
        return (
            self.x - margin <= x <= self.x + self.width + margin
            and self.y - margin <= y <= self.y + self.height + margin
        )

    def intersection(self, other: "Rect") -> "Rect":
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.x + self.width, other.x + other.width)
        y2 = min(self.y + self.height, other.y + other.height)
        if x2 <= x1 or y2 <= y1:
            return Rect(0.0, 0.0, 0.0, 0.0)
        return Rect(x1, y1, x2 - x1, y2 - y1)

    def expanded(self, margin: float) -> "Rect":
        return Rect(
            self.x - margin,
            self.y - margin,
            self.width + 2 * margin,
            self.height + 2 * margin,
        )

    def clamped(self, width: int, height: int) -> "Rect":
        return self.intersection(Rect(0.0, 0.0, float(width), float(height)))

    def to_dict(self) -> Dict[str, float]:
        return {
            "x": float(self.x),
            "y": float(self.y),
            "width": float(self.width),
            "height": float(self.height),
        }

    @classmethod
    def coerce(cls, value: Any) -> "Rect":
        """Build a Rect from a Rect, an (x, y, w, h) sequence or a mapping."""
        if isinstance(value, Rect):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(
                    float(value["x"]),
                    float(value["y"]),
                    float(value["width"]),
                    float(value["height"]),
                )
            except KeyError as exc:
                raise ValueError(f"Goal region mapping is missing {exc}") from exc
        if isinstance(value, (tuple, list)) and len(value) == 4:
            x, y, w, h = value
            return cls(float(x), float(y), float(w), float(h))
        raise ValueError(f"Cannot interpret {value!r} as a rectangle")


@dataclass(frozen=True)
class Frame:
    image: Any
    frame_index: int = 0
    t_capture_ns: int = 0

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


@dataclass(frozen=True)
class BallDetection:
    x: float
    y: float
    radius: float
    confidence: float
    source: str
    velocity_x: Optional[float] = None
    velocity_y: Optional[float] = None
    frame_index: int = 0
    track_id: Optional[int] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "x": round(float(self.x), 2),
            "y": round(float(self.y), 2),
            "radius": round(float(self.radius), 2),
            "confidence": round(float(self.confidence), 4),
            "source": self.source,
            "frameIndex": int(self.frame_index),
            "trackId": self.track_id,
        }
        if self.velocity_x is not None and self.velocity_y is not None:
            payload["velocityX"] = round(float(self.velocity_x), 3)
            payload["velocityY"] = round(float(self.velocity_y), 3)
        payload.update(self.extras)
        return payload


@dataclass(frozen=True)
class TargetDetection:
    center_x: float
    center_y: float
    radius: float
    target_number: int
    is_circular: bool
    quadrant: int
    confidence: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "centerX": round(float(self.center_x), 2),
            "centerY": round(float(self.center_y), 2),
            "radius": round(float(self.radius), 2),
            "targetNumber": int(self.target_number),
            "isCircular": bool(self.is_circular),
            "quadrant": int(self.quadrant),
            "confidence": round(float(self.confidence), 4),
        }


@dataclass(frozen=True)
class MotionRegion:
    x: int
    y: int
    width: int
    height: int
    area: float
    intensity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": int(self.x),
            "y": int(self.y),
            "width": int(self.width),
            "height": int(self.height),
            "centerX": self.x + self.width / 2.0,
            "centerY": self.y + self.height / 2.0,
            "area": float(self.area),
            "intensity": round(float(self.intensity), 3),
        }


@dataclass(frozen=True)
class TargetScan:
    targets: List[TargetDetection]
    goal_region: Rect
    tape_region: Optional[Rect] = None
    alignment: float = 0.0
    alignment_threshold: float = 0.7

    @property
    def goal_aligned(self) -> bool:
        return self.alignment > self.alignment_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targets": [target.to_dict() for target in self.targets],
            "tapeRegion": self.tape_region.to_dict() if self.tape_region else None,
            "alignment": round(float(self.alignment), 4),
            "goalAligned": self.goal_aligned,
            "goalRegion": self.goal_region.to_dict(),
        }

"""Per-frame session log with JSON and CSV export."""

from __future__ import annotations

import csv
import json
import math
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from configs.settings import LoggerConfig
from contracts.versioning import stamp_versions
from exceptions import ExportError
from log_config.logger import get_logger

logger = get_logger(__name__)

FILENAME_TIME_FORMAT = "%Y-%m-%d_%H-%M-%S"
CSV_HEADER = [
    "Timestamp",
    "FrameNumber",
    "BallX",
    "BallY",
    "VelocityX",
    "VelocityY",
    "TargetsCount",
    "ImpactDetected",
    "ImpactX",
    "ImpactY",
]
_TARGET_KEYS = ("centerX", "centerY", "radius", "targetNumber", "isCircular", "quadrant")

Point = Tuple[float, float]


@dataclass(frozen=True)
class TargetData:
    center_x: int
    center_y: int
    radius: float
    target_number: int
    is_circular: bool
    quadrant: int

    @classmethod
    def from_dict(cls, target: Mapping[str, Any]) -> Optional["TargetData"]:
        if any(target.get(key) is None for key in _TARGET_KEYS):
            return None
        try:
            return cls(
                center_x=int(target["centerX"]),
                center_y=int(target["centerY"]),
                radius=float(target["radius"]),
                target_number=int(target["targetNumber"]),
                is_circular=bool(target["isCircular"]),
                quadrant=int(target["quadrant"]),
            )
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "centerX": self.center_x,
            "centerY": self.center_y,
            "radius": self.radius,
            "targetNumber": self.target_number,
            "isCircular": self.is_circular,
            "quadrant": self.quadrant,
        }


@dataclass(frozen=True)
class FrameData:
    timestamp: datetime
    frame_number: int
    ball_position: Optional[Point]
    ball_velocity: Optional[Point]
    targets: List[TargetData] = field(default_factory=list)
    impact_detected: bool = False
    impact_position: Optional[Point] = None

    def to_dict(self) -> Dict[str, Any]:
        ball = self.ball_position
        velocity = self.ball_velocity
        impact = self.impact_position
        return {
            "timestamp": self.timestamp.isoformat(),
            "frameNumber": self.frame_number,
            "targets": [target.to_dict() for target in self.targets],
            "impactDetected": self.impact_detected,
            "ballPositionX": ball[0] if ball else None,
            "ballPositionY": ball[1] if ball else None,
            "ballVelocityX": velocity[0] if velocity else None,
            "ballVelocityY": velocity[1] if velocity else None,
            "impactPositionX": impact[0] if impact else None,
            "impactPositionY": impact[1] if impact else None,
        }


@dataclass(frozen=True)
class ImpactEvent:
    timestamp: datetime
    frame_number: int
    position: Point
    target_hit: Optional[int]
    ball_velocity: Optional[Point]

    def to_dict(self) -> Dict[str, Any]:
        velocity = self.ball_velocity
        return {
            "timestamp": self.timestamp.isoformat(),
            "frameNumber": self.frame_number,
            "targetHit": self.target_hit,
            "positionX": self.position[0],
            "positionY": self.position[1],
            "ballVelocityX": velocity[0] if velocity else None,
            "ballVelocityY": velocity[1] if velocity else None,
        }


def _ball_fields(ball: Optional[Mapping[str, Any]]) -> Tuple[Optional[Point], Optional[Point]]:
    if not ball or ball.get("x") is None or ball.get("y") is None:
        return None, None
    # Positions are stored as whole pixels
    position = (float(int(ball["x"])), float(int(ball["y"])))
    vx, vy = ball.get("velocityX"), ball.get("velocityY")
    velocity = (float(vx), float(vy)) if vx is not None and vy is not None else None
    return position, velocity


def closest_target_number(position: Point, targets: Sequence[Mapping[str, Any]]) -> Optional[int]:
    best: Optional[int] = None
    best_distance = math.inf
    for target in targets:
        try:
            cx = int(target["centerX"])
            cy = int(target["centerY"])
            number = int(target["targetNumber"])
        except (KeyError, TypeError, ValueError):
            continue
        distance = math.hypot(position[0] - cx, position[1] - cy)
        if distance < best_distance:
            best_distance = distance
            best = number
    return best


def _format_number(value: float) -> str:
    return f"{value:g}"


class DataLogger:
    """Keeps the most recent frames of a session plus every impact."""

    def __init__(self, config: Optional[LoggerConfig] = None, clock=None) -> None:
        self._config = config or LoggerConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.frame_data: Deque[FrameData] = deque(maxlen=self._config.max_frame_data)
        self.impact_events: List[ImpactEvent] = []

    def log_frame(
        self,
        frame_number: int,
        ball: Optional[Mapping[str, Any]],
        targets: Sequence[Mapping[str, Any]],
        impact_detected: bool,
    ) -> FrameData:
        now = self._clock()
        position, velocity = _ball_fields(ball)
        target_data = [t for t in (TargetData.from_dict(target) for target in targets) if t is not None]
        record = FrameData(
            timestamp=now,
            frame_number=frame_number,
            ball_position=position,
            ball_velocity=velocity,
            targets=target_data,
            impact_detected=bool(impact_detected),
            impact_position=position if impact_detected else None,
        )
        self.frame_data.append(record)

        if impact_detected and position is not None:
            event = ImpactEvent(
                timestamp=now,
                frame_number=frame_number,
                position=position,
                target_hit=closest_target_number(position, targets),
                ball_velocity=velocity,
            )
            self.impact_events.append(event)
            logger.info(f"Logged impact at frame {frame_number}, target {event.target_hit}")
        return record

    def summary(self) -> Dict[str, Any]:
        total_frames = len(self.frame_data)
        target_total = sum(len(frame.targets) for frame in self.frame_data)
        return {
            "totalFrames": total_frames,
            "totalImpacts": len(self.impact_events),
            "framesWithBall": sum(1 for frame in self.frame_data if frame.ball_position is not None),
            "averageTargets": target_total // total_frames if total_frames else 0,
            "sessionDuration": total_frames / self._config.assumed_fps if total_frames else 0.0,
        }

    def clear(self) -> None:
        self.frame_data.clear()
        self.impact_events.clear()

    def _export_path(self, directory: Union[str, Path], suffix: str) -> Path:
        stamp = self._clock().strftime(FILENAME_TIME_FORMAT)
        return Path(directory) / f"bounce_back_data_{stamp}.{suffix}"

    def export_json(self, directory: Union[str, Path] = ".") -> Path:
        path = self._export_path(directory, "json")
        payload = stamp_versions(
            {
                "timestamp": self._clock().isoformat(),
                "frameData": [frame.to_dict() for frame in self.frame_data],
                "impactEvents": [event.to_dict() for event in self.impact_events],
                "summary": self.summary(),
            }
        )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2))
        except OSError as exc:
            logger.error(f"Failed to export JSON to {path}: {exc}")
            raise ExportError(f"Failed to export session data to {path}: {exc}") from exc
        logger.info(f"Exported {len(self.frame_data)} frames to {path}")
        return path

    def export_csv(self, directory: Union[str, Path] = ".") -> Path:
        path = self._export_path(directory, "csv")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", newline="") as handle:
                writer = csv.writer(handle)
                writer.writerow(CSV_HEADER)
                for frame in self.frame_data:
                    ball = frame.ball_position or (0.0, 0.0)
                    velocity = frame.ball_velocity or (0.0, 0.0)
                    impact = frame.impact_position or (0.0, 0.0)
                    writer.writerow(
                        [
                            frame.timestamp.isoformat(),
                            frame.frame_number,
                            _format_number(ball[0]),
                            _format_number(ball[1]),
                            _format_number(velocity[0]),
                            _format_number(velocity[1]),
                            len(frame.targets),
                            "true" if frame.impact_detected else "false",
                            _format_number(impact[0]),
                            _format_number(impact[1]),
                        ]
                    )
        except OSError as exc:
            logger.error(f"Failed to export CSV to {path}: {exc}")
            raise ExportError(f"Failed to export session data to {path}: {exc}") from exc
        logger.info(f"Exported {len(self.frame_data)} frames to {path}")
        return path

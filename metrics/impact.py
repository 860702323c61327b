"""Ball/target impact geometry with debouncing."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from contracts import Rect, TargetDetection
from log_config.logger import get_logger

logger = get_logger(__name__)

TargetLike = Union[TargetDetection, Mapping[str, Any]]


@dataclass(frozen=True)
class ImpactConfig:
    contact_factor: float = 1.0
    min_rebound_speed: float = 3.0
    cooldown_frames: int = 15


@dataclass(frozen=True)
class ImpactResult:
    detected: bool
    frame_index: int
    reason: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    target_number: Optional[int] = None


def _target_circle(target: TargetLike) -> Optional[Tuple[float, float, float, Optional[int]]]:
    if isinstance(target, TargetDetection):
        return target.center_x, target.center_y, target.radius, target.target_number
    try:
        number = target.get("targetNumber")
        return (
            float(target["centerX"]),
            float(target["centerY"]),
            float(target.get("radius", 0.0)),
            int(number) if number is not None else None,
        )
    except (KeyError, TypeError, ValueError):
        return None


def ball_in_goal(x: float, y: float, radius: float, goal_region: Rect) -> bool:
    return goal_region.expanded(max(radius, 0.0)).contains(x, y)


def circle_contact(
    ball_x: float,
    ball_y: float,
    ball_radius: float,
    target_x: float,
    target_y: float,
    target_radius: float,
    contact_factor: float = 1.0,
) -> bool:
    distance = math.hypot(ball_x - target_x, ball_y - target_y)
    return distance <= target_radius + ball_radius * contact_factor


def velocity_reversed(
    velocity: Optional[Tuple[float, float]],
    previous_velocity: Optional[Tuple[float, float]],
    min_speed: float,
) -> bool:
    """True when the ball turned back on itself after moving fast enough."""
    if velocity is None or previous_velocity is None:
        return False
    dot = velocity[0] * previous_velocity[0] + velocity[1] * previous_velocity[1]
    return dot < 0 and math.hypot(*previous_velocity) >= min_speed


def closest_target(
    x: float, y: float, targets: Sequence[TargetLike]
) -> Optional[Tuple[float, float, float, Optional[int]]]:
    best = None
    best_distance = math.inf
    for target in targets:
        circle = _target_circle(target)
        if circle is None:
            continue
        distance = math.hypot(x - circle[0], y - circle[1])
        if distance < best_distance:
            best_distance = distance
            best = circle
    return best


def contacted_target(
    x: float,
    y: float,
    radius: float,
    targets: Sequence[TargetLike],
    contact_factor: float = 1.0,
) -> Optional[Tuple[float, float, float, Optional[int]]]:
    """Target the ball touches, the one with the deepest overlap when several do."""
    best = None
    best_gap = math.inf
    for target in targets:
        circle = _target_circle(target)
        if circle is None or not circle_contact(x, y, radius, *circle[:3], contact_factor):
            continue
        gap = math.hypot(x - circle[0], y - circle[1]) - circle[2]
        if gap < best_gap:
            best_gap = gap
            best = circle
    return best


def _ball_position(ball: Optional[Mapping[str, Any]]) -> Optional[Tuple[float, float, float]]:
    if not ball:
        return None
    try:
        return float(ball["x"]), float(ball["y"]), float(ball.get("radius") or 0.0)
    except (KeyError, TypeError, ValueError):
        return None


def _ball_velocity(ball: Mapping[str, Any]) -> Optional[Tuple[float, float]]:
    vx = ball.get("velocityX")
    vy = ball.get("velocityY")
    if vx is None or vy is None:
        return None
    return float(vx), float(vy)


class ImpactDetector:
    """Decides per frame whether the ball hit a target or rebounded.

    Each call to ``check`` advances the internal frame counter by one.
    After an impact, further impacts are suppressed for
    ``cooldown_frames`` frames.
    """

    def __init__(self, config: Optional[ImpactConfig] = None) -> None:
        self._config = config or ImpactConfig()
        self.reset()

    def reset(self) -> None:
        self._frame_index = 0
        self.impact_count = 0
        self.last_impact_frame: Optional[int] = None
        self.last_impact_position: Optional[Tuple[float, float]] = None
        self.last_target_hit: Optional[int] = None

    @property
    def frame_index(self) -> int:
        return self._frame_index

    def check(
        self,
        ball: Optional[Mapping[str, Any]],
        targets: Sequence[TargetLike],
        goal_region: Any,
        previous_velocity: Optional[Tuple[float, float]] = None,
    ) -> ImpactResult:
        self._frame_index += 1
        frame_index = self._frame_index
        config = self._config

        position = _ball_position(ball)
        if position is None:
            return ImpactResult(False, frame_index, reason="no_ball")
        x, y, radius = position
        region = Rect.coerce(goal_region)
        if not ball_in_goal(x, y, radius, region):
            return ImpactResult(False, frame_index, reason="outside_goal")

        reason = None
        hit_number = None
        touched = contacted_target(x, y, radius, targets, config.contact_factor)
        if touched is not None:
            reason = "target_contact"
            hit_number = touched[3]
        elif velocity_reversed(_ball_velocity(ball), previous_velocity, config.min_rebound_speed):
            reason = "rebound"
            nearest = closest_target(x, y, targets)
            hit_number = nearest[3] if nearest is not None else None

        if reason is None:
            return ImpactResult(False, frame_index, x=x, y=y)

        if (
            self.last_impact_frame is not None
            and frame_index - self.last_impact_frame < config.cooldown_frames
        ):
            return ImpactResult(False, frame_index, reason="cooldown", x=x, y=y)

        self.impact_count += 1
        self.last_impact_frame = frame_index
        self.last_impact_position = (x, y)
        self.last_target_hit = hit_number
        logger.info(
            f"Impact #{self.impact_count} at ({x:.1f}, {y:.1f}) frame {frame_index} ({reason}, target {hit_number})"
        )
        return ImpactResult(
            True, frame_index, reason=reason, x=x, y=y, target_number=hit_number
        )

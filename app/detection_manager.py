"""Goal locking and target locking state for a training session."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from configs.settings import GoalLockConfig
from contracts import Rect
from log_config.logger import get_logger

logger = get_logger(__name__)


def _target_number(target: Mapping[str, Any]) -> Optional[int]:
    number = target.get("targetNumber")
    # bool is an int subclass but never a valid target number
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None


class DetectionManager:
    """Locks the goal after several consistent detections, then collects targets.

    The goal must pass validation on ``required_valid_frames`` consecutive
    frames before it is locked. Targets are only considered once the goal
    is locked, and are added to the locked set on request.
    """

    def __init__(self, config: Optional[GoalLockConfig] = None) -> None:
        self._config = config or GoalLockConfig()
        self.reset()

    def reset(self) -> None:
        self.goal_locked = False
        self.targets_locked = False
        self.locked_goal_region: Optional[Rect] = None
        self.locked_targets: List[Dict[str, Any]] = []
        self.current_targets: List[Dict[str, Any]] = []
        self.valid_goal_frames = 0
        self.show_lock_targets_button = False

    def validate_goal_region(self, region: Any, frame_size: Tuple[float, float]) -> bool:
        width, height = frame_size
        if width <= 0 or height <= 0:
            return False
        rect = Rect.coerce(region)
        config = self._config
        frame_area = float(width) * float(height)
        area = rect.width * rect.height
        aspect = rect.width / max(rect.height, 1.0)
        return (
            config.min_area_ratio * frame_area < area < config.max_area_ratio * frame_area
            and config.min_aspect < aspect < config.max_aspect
        )

    def process_goal_detection(self, region: Any, frame_size: Tuple[float, float]) -> bool:
        """Feed one frame's goal region; returns True once the goal is locked."""
        if self.goal_locked:
            return True

        rect = Rect.coerce(region) if region is not None else None
        if rect is not None and not rect.is_empty and self.validate_goal_region(rect, frame_size):
            self.valid_goal_frames += 1
            if self.valid_goal_frames >= self._config.required_valid_frames:
                self.locked_goal_region = rect
                self.goal_locked = True
                logger.info(
                    f"Goal locked at ({rect.x:.0f}, {rect.y:.0f}, {rect.width:.0f}x{rect.height:.0f}) "
                    f"after {self.valid_goal_frames} valid frames"
                )
        else:
            self.valid_goal_frames = 0
        return self.goal_locked

    def _is_locked(self, number: int) -> bool:
        return any(_target_number(target) == number for target in self.locked_targets)

    def process_target_detection(self, targets: Sequence[Mapping[str, Any]]) -> None:
        if not self.goal_locked:
            return
        unlocked = []
        for target in targets:
            number = _target_number(target)
            if number is not None and not self._is_locked(number):
                unlocked.append(dict(target))
        self.current_targets = unlocked
        self.show_lock_targets_button = bool(unlocked)

    def lock_current_targets(self) -> List[Dict[str, Any]]:
        for target in self.current_targets:
            number = _target_number(target)
            if number is not None and not self._is_locked(number):
                self.locked_targets.append(target)
        self.targets_locked = bool(self.locked_targets)
        self.show_lock_targets_button = False
        logger.info(f"Locked targets: {[_target_number(t) for t in self.locked_targets]}")
        return list(self.locked_targets)

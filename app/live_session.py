"""Per-frame live pipeline: detection, impact feedback, goal lock and logging."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from app.detection_manager import DetectionManager
from configs.settings import AppConfig
from contracts import Rect
from detect.utils import validate_frame
from log_config.logger import get_logger
from record.data_logger import DataLogger
from vision.engine import VisionEngine

logger = get_logger(__name__)

HIT_MESSAGE = "HIT!"


@dataclass(frozen=True)
class FrameReport:
    frame_number: int
    performance: Dict[str, Any]
    targets: List[Dict[str, Any]]
    tape_region: Optional[Dict[str, float]]
    goal_aligned: bool
    ball: Optional[Dict[str, Any]]
    impact: bool
    motion_regions: List[Dict[str, Any]]
    statistics: Dict[str, Any]
    goal_locked: bool
    calibrated: bool = False
    hit_message: Optional[str] = None


class LiveSession:
    """Runs the full analysis chain for each camera frame.

    Lighting is recalibrated every ``lighting_calibration_interval`` frames,
    starting with the first. A detected impact shows the hit message for
    ``hit_hold_s`` seconds; impacts during that window do not retrigger it.
    """

    def __init__(
        self,
        engine: Optional[VisionEngine] = None,
        config: Optional[AppConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.engine = engine or VisionEngine(config)
        self._config = self.engine.config
        self._clock = clock or time.monotonic
        self.detection_manager = DetectionManager(self._config.goal_lock)
        self.data_logger = DataLogger(self._config.logger)
        self.frame_counter = 0
        self._hit_until: Optional[float] = None

    @property
    def hit_showing(self) -> bool:
        return self._hit_until is not None and self._clock() < self._hit_until

    def reset(self) -> None:
        self.engine.reset_tracking()
        self.detection_manager.reset()
        self.data_logger.clear()
        self.frame_counter = 0
        self._hit_until = None

    def process_frame(self, frame: np.ndarray, goal_region: Any = None) -> FrameReport:
        frame = validate_frame(frame)
        engine = self.engine
        height, width = frame.shape[:2]
        if goal_region is None and self.detection_manager.goal_locked:
            goal_region = self.detection_manager.locked_goal_region

        performance = engine.analyze_frame_performance(frame)

        calibrated = False
        if self.frame_counter % self._config.processing.lighting_calibration_interval == 0:
            engine.calibrate_for_lighting(frame)
            calibrated = True

        targets: List[Dict[str, Any]] = []
        tape_region = None
        goal_aligned = False
        if goal_region is not None:
            scan = engine.scan_targets(frame, goal_region).to_dict()
            targets = scan["targets"]
            tape_region = scan["tapeRegion"]
            goal_aligned = scan["goalAligned"]

        ball = engine.detect_ball_in_frame(frame)
        impact = False
        if goal_region is not None:
            impact = engine.detect_impact_with_ball(ball, targets, goal_region)
        motion_regions = engine.detect_motion_in_frame(frame)
        statistics = engine.get_tracking_statistics()

        self.frame_counter += 1
        self.detection_manager.process_target_detection(targets)
        self.data_logger.log_frame(self.frame_counter, ball, targets, impact)

        if impact and not self.hit_showing:
            self._hit_until = self._clock() + self._config.logger.hit_hold_s
            logger.info(f"{HIT_MESSAGE} frame {self.frame_counter}")
        hit_message = HIT_MESSAGE if self.hit_showing else None

        tape_rect = Rect.coerce(tape_region) if tape_region is not None else None
        goal_locked = self.detection_manager.process_goal_detection(tape_rect, (width, height))

        logger.debug(
            f"Frame {self.frame_counter}: {len(targets)} targets, ball={'yes' if ball else 'no'}, "
            f"{len(motion_regions)} motion regions, {performance['processingTime']}us"
        )
        return FrameReport(
            frame_number=self.frame_counter,
            performance=performance,
            targets=targets,
            tape_region=tape_region,
            goal_aligned=goal_aligned,
            ball=ball,
            impact=impact,
            motion_regions=motion_regions,
            statistics=statistics,
            goal_locked=goal_locked,
            calibrated=calibrated,
            hit_message=hit_message,
        )

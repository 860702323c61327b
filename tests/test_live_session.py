import cv2
import numpy as np
import pytest

from app.live_session import HIT_MESSAGE, LiveSession
from configs.settings import AppConfig, ProcessingConfig
from contracts import Rect
from vision.engine import VisionEngine

GOAL = (40, 30, 240, 180)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ScriptedImpactEngine(VisionEngine):
    """Engine whose impact answers come from a list, one per frame."""

    def __init__(self, impacts) -> None:
        super().__init__()
        self._impacts = list(impacts)

    def detect_impact_with_ball(self, ball, targets, goal_region) -> bool:
        return self._impacts.pop(0) if self._impacts else False


def _goal_frame(with_targets: bool = True) -> np.ndarray:
    frame = np.full((240, 320, 3), 90, dtype=np.uint8)
    cv2.rectangle(frame, (40, 30), (280, 210), (255, 255, 255), 4)
    if with_targets:
        cv2.circle(frame, (100, 80), 18, (20, 20, 20), -1)
        cv2.circle(frame, (240, 160), 18, (20, 20, 20), -1)
    return frame


def _plain_frame() -> np.ndarray:
    return np.full((240, 320, 3), 90, dtype=np.uint8)


def test_report_contents() -> None:
    session = LiveSession()
    report = session.process_frame(_goal_frame(), GOAL)

    assert report.frame_number == 1
    assert [t["targetNumber"] for t in report.targets] == [1, 2]
    assert report.tape_region is not None
    assert report.goal_aligned
    assert not report.impact
    assert report.statistics["framesProcessed"] == 1
    assert "processingTime" in report.performance
    assert len(session.data_logger.frame_data) == 1


def test_static_board_never_reports_impact() -> None:
    session = LiveSession()
    reports = [session.process_frame(_goal_frame(), GOAL) for _ in range(4)]

    assert not any(report.impact for report in reports)
    assert session.engine.get_tracking_statistics()["impactCount"] == 0


def test_no_goal_region_skips_targets_and_impact() -> None:
    engine = ScriptedImpactEngine([True])
    session = LiveSession(engine=engine)

    report = session.process_frame(_goal_frame())

    assert report.targets == []
    assert report.tape_region is None
    assert not report.impact


def test_lighting_recalibrated_on_interval() -> None:
    config = AppConfig(processing=ProcessingConfig(lighting_calibration_interval=3))
    session = LiveSession(config=config)

    flags = [session.process_frame(_plain_frame()).calibrated for _ in range(7)]

    assert flags == [True, False, False, True, False, False, True]
    assert session.engine.lighting.calibrated


def test_hit_message_is_held() -> None:
    clock = FakeClock()
    session = LiveSession(engine=ScriptedImpactEngine([True, True, False, True]), clock=clock)

    first = session.process_frame(_plain_frame(), GOAL)
    clock.now = 1.0
    second = session.process_frame(_plain_frame(), GOAL)
    clock.now = 2.5
    third = session.process_frame(_plain_frame(), GOAL)
    clock.now = 3.0
    fourth = session.process_frame(_plain_frame(), GOAL)

    assert first.hit_message == HIT_MESSAGE
    assert second.hit_message == HIT_MESSAGE
    assert third.hit_message is None
    assert fourth.hit_message == HIT_MESSAGE
    assert session.hit_showing
    clock.now = 5.5
    assert not session.hit_showing


def test_held_hit_does_not_extend_window() -> None:
    clock = FakeClock()
    session = LiveSession(engine=ScriptedImpactEngine([True, True]), clock=clock)

    session.process_frame(_plain_frame(), GOAL)
    clock.now = 1.5
    session.process_frame(_plain_frame(), GOAL)
    clock.now = 2.1

    assert not session.hit_showing


def test_goal_locks_from_tape_and_is_reused() -> None:
    session = LiveSession()
    reports = [session.process_frame(_goal_frame(), GOAL) for _ in range(5)]

    assert [r.goal_locked for r in reports] == [False, False, False, False, True]
    locked = session.detection_manager.locked_goal_region
    assert isinstance(locked, Rect)
    assert locked.width == pytest.approx(240, abs=10)

    followup = session.process_frame(_goal_frame())
    assert [t["targetNumber"] for t in followup.targets] == [1, 2]
    assert session.detection_manager.current_targets


def test_reset() -> None:
    session = LiveSession()
    for _ in range(5):
        session.process_frame(_goal_frame(), GOAL)

    session.reset()

    assert session.frame_counter == 0
    assert not session.detection_manager.goal_locked
    assert len(session.data_logger.frame_data) == 0
    assert session.engine.get_tracking_statistics()["framesProcessed"] == 0

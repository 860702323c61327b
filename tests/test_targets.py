import cv2
import numpy as np
import pytest

from contracts import Rect, TargetDetection
from detect.config import TargetConfig
from detect.targets import (
    TargetCandidate,
    TargetDetector,
    assign_target_numbers,
    classify_contour,
    merge_candidates,
    quadrant_for,
)

GOAL = (40, 30, 240, 180)


def _goal_frame(circles=((100, 80), (240, 160)), radius: int = 18, tape: bool = True) -> np.ndarray:
    frame = np.full((240, 320, 3), 90, dtype=np.uint8)
    if tape:
        cv2.rectangle(frame, (40, 30), (280, 210), (255, 255, 255), 4)
    for center in circles:
        cv2.circle(frame, center, radius, (20, 20, 20), -1)
    return frame


def _candidate(x, y, radius=10.0, confidence=0.9) -> TargetCandidate:
    return TargetCandidate(x=x, y=y, radius=radius, is_circular=True, confidence=confidence)


def test_detects_numbered_targets_in_quadrants() -> None:
    scan = TargetDetector().detect(_goal_frame(), GOAL)

    assert [target.target_number for target in scan.targets] == [1, 2]
    first, second = scan.targets
    assert (first.center_x, first.center_y) == (pytest.approx(100, abs=3), pytest.approx(80, abs=3))
    assert first.quadrant == 1
    assert second.quadrant == 4
    assert all(target.is_circular for target in scan.targets)
    assert all(target.radius == pytest.approx(18, abs=4) for target in scan.targets)


def test_tape_region_and_alignment() -> None:
    scan = TargetDetector().detect(_goal_frame(), GOAL)

    assert scan.tape_region is not None
    assert scan.alignment > 0.9
    assert scan.goal_aligned
    payload = scan.to_dict()
    assert payload["goalAligned"] is True
    assert len(payload["targets"]) == 2


def test_no_tape_means_not_aligned() -> None:
    scan = TargetDetector().detect(_goal_frame(tape=False), GOAL)

    assert scan.tape_region is None
    assert scan.alignment == 0.0
    assert not scan.goal_aligned


def test_numbers_are_stable_across_frames() -> None:
    detector = TargetDetector()
    detector.detect(_goal_frame(), GOAL)
    shifted = detector.detect(_goal_frame(circles=((104, 82), (236, 158))), GOAL)
    assert [t.target_number for t in shifted.targets] == [1, 2]

    only_second = detector.detect(_goal_frame(circles=((236, 158),)), GOAL)
    assert [t.target_number for t in only_second.targets] == [2]


def test_reset_forgets_numbers() -> None:
    detector = TargetDetector()
    detector.detect(_goal_frame(), GOAL)
    detector.detect(_goal_frame(circles=((240, 160),)), GOAL)
    detector.reset()

    scan = detector.detect(_goal_frame(circles=((240, 160),)), GOAL)
    assert [t.target_number for t in scan.targets] == [1]


def test_goal_outside_frame_gives_empty_scan() -> None:
    scan = TargetDetector().detect(_goal_frame(), (400, 300, 50, 50))

    assert scan.targets == []
    assert scan.goal_region.is_empty
    assert scan.to_dict()["tapeRegion"] is None


def test_max_targets_caps_results() -> None:
    circles = ((90, 70), (160, 70), (230, 70), (90, 170), (160, 170), (230, 170))
    scan = TargetDetector(TargetConfig(max_targets=3)).detect(_goal_frame(circles=circles, radius=14), GOAL)
    assert len(scan.targets) == 3


def _polygon(points) -> np.ndarray:
    return np.array(points, dtype=np.int32).reshape(-1, 1, 2)


def test_square_contour_is_not_circular() -> None:
    square = _polygon([(0, 0), (40, 0), (40, 40), (0, 40)])

    candidate = classify_contour(square, (10, 20), (5, 45), circularity_threshold=0.82)

    assert candidate is not None
    assert candidate.confidence == pytest.approx(np.pi / 4, abs=0.01)
    assert not candidate.is_circular
    assert (candidate.x, candidate.y) == (pytest.approx(30), pytest.approx(40))


def test_round_contour_is_circular() -> None:
    angles = np.linspace(0, 2 * np.pi, 72, endpoint=False)
    circle = _polygon([(100 + 20 * np.cos(a), 100 + 20 * np.sin(a)) for a in angles])

    candidate = classify_contour(circle, (0, 0), (5, 45), circularity_threshold=0.82)

    assert candidate is not None
    assert candidate.is_circular
    assert candidate.radius == pytest.approx(20, abs=1.5)


def test_contour_outside_radius_bounds_is_dropped() -> None:
    big = _polygon([(0, 0), (200, 0), (200, 200), (0, 200)])
    thin = _polygon([(0, 0), (40, 0), (40, 1), (0, 1)])

    assert classify_contour(big, (0, 0), (5, 45), 0.82) is None
    assert classify_contour(thin, (0, 0), (5, 45), 0.82) is None


def test_quadrant_for() -> None:
    goal = Rect(0, 0, 100, 100)
    assert quadrant_for(10, 10, goal) == 1
    assert quadrant_for(90, 10, goal) == 2
    assert quadrant_for(10, 90, goal) == 3
    assert quadrant_for(90, 90, goal) == 4


def test_merge_keeps_stronger_duplicate() -> None:
    merged = merge_candidates(
        [_candidate(50, 50, confidence=0.6), _candidate(53, 51, confidence=0.95), _candidate(150, 50)]
    )
    assert len(merged) == 2
    assert merged[0].confidence == 0.95


def test_assign_numbers_respects_gate_and_fills_lowest() -> None:
    previous = [
        TargetDetection(center_x=50, center_y=50, radius=10, target_number=3, is_circular=True, quadrant=1),
        TargetDetection(center_x=200, center_y=50, radius=10, target_number=1, is_circular=True, quadrant=2),
    ]
    candidates = [_candidate(52, 49), _candidate(120, 150), _candidate(300, 300)]

    numbers = assign_target_numbers(candidates, previous, gate_px=40.0)

    assert numbers == [3, 1, 2]

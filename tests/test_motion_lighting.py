import cv2
import numpy as np
import pytest

from detect.config import LightingConfig, MotionConfig
from detect.lighting import (
    LightingProfile,
    apply_lighting,
    calibrate_lighting,
    lighting_quality,
    measure_lighting,
)
from detect.motion import MotionDetector


def _frame_with_box(x: int, y: int, size: int = 30, value: int = 200) -> np.ndarray:
    frame = np.full((240, 320), 50, dtype=np.uint8)
    cv2.rectangle(frame, (x, y), (x + size, y + size), value, -1)
    return frame


def test_first_motion_call_returns_empty() -> None:
    detector = MotionDetector(MotionConfig())
    assert detector.detect(_frame_with_box(10, 10)) == []


def test_moving_box_produces_region() -> None:
    detector = MotionDetector(MotionConfig())
    detector.detect(_frame_with_box(40, 100))
    regions = detector.detect(_frame_with_box(160, 100))

    assert regions
    largest = regions[0]
    assert largest.area >= regions[-1].area
    assert largest.intensity > 0
    centers = [r.x + r.width / 2 for r in regions]
    assert any(abs(c - 175) < 40 for c in centers)


def test_static_scene_has_no_motion() -> None:
    detector = MotionDetector(MotionConfig())
    frame = _frame_with_box(40, 100)
    detector.detect(frame)
    assert detector.detect(frame) == []


def test_regions_are_capped_and_scaled_back() -> None:
    detector = MotionDetector(MotionConfig(max_regions=2, min_area=10), scale=0.5)
    blank = np.full((240, 320), 50, dtype=np.uint8)
    busy = blank.copy()
    for x in (20, 100, 180, 260):
        cv2.rectangle(busy, (x, 100), (x + 30, 130), 220, -1)

    detector.detect(blank)
    regions = detector.detect(busy)

    assert len(regions) == 2
    assert all(region.x + region.width <= 330 for region in regions)
    assert all(region.width >= 25 for region in regions)


def test_set_scale_resets_history() -> None:
    detector = MotionDetector(MotionConfig())
    detector.detect(_frame_with_box(40, 100))
    detector.set_scale(0.5)
    assert detector.detect(_frame_with_box(160, 100)) == []


def test_calibration_brightens_dark_frame() -> None:
    dark = np.full((120, 160), 32, dtype=np.uint8)
    profile = calibrate_lighting(dark, LightingConfig())

    assert profile.calibrated
    assert profile.gain == pytest.approx(3.0)
    assert profile.use_clahe
    assert profile.threshold_scale == pytest.approx(0.5)
    assert apply_lighting(dark, profile).mean() > dark.mean()


def test_calibration_of_black_frame_uses_max_gain() -> None:
    profile = calibrate_lighting(np.zeros((64, 64), dtype=np.uint8), LightingConfig(max_gain=2.5))
    assert profile.gain == pytest.approx(2.5)


def test_calibration_of_ramp_frame() -> None:
    frame = np.tile(np.linspace(0, 255, 256, dtype=np.uint8), (64, 1))
    profile = calibrate_lighting(frame, LightingConfig())

    assert profile.gain == pytest.approx(128.0 / 127.5, abs=0.01)
    assert not profile.use_clahe
    assert profile.threshold_scale == pytest.approx(profile.contrast / 50.0)
    assert 0.5 < profile.threshold_scale < 1.5


def test_threshold_scale_is_clamped_for_high_contrast() -> None:
    rows, cols = np.indices((64, 64))
    checkerboard = np.where((rows + cols) % 2 == 0, 0, 255).astype(np.uint8)

    profile = calibrate_lighting(checkerboard, LightingConfig())

    assert profile.contrast == pytest.approx(127.5, abs=0.5)
    assert profile.threshold_scale == pytest.approx(1.5)


def test_uncalibrated_profile_is_identity() -> None:
    gray = np.full((16, 16), 77, dtype=np.uint8)
    assert apply_lighting(gray, LightingProfile()) is gray


@pytest.mark.parametrize(
    "brightness, contrast, expected",
    [(30, 40, "dark"), (230, 40, "bright"), (120, 10, "low_contrast"), (120, 40, "good")],
)
def test_lighting_quality(brightness, contrast, expected) -> None:
    assert lighting_quality(brightness, contrast) == expected


def test_measure_lighting_color_frame() -> None:
    frame = np.full((20, 20, 3), 100, dtype=np.uint8)
    mean, std = measure_lighting(frame)
    assert mean == pytest.approx(100, abs=1)
    assert std == pytest.approx(0, abs=0.5)

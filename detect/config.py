from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from exceptions import InvalidModeError


class ProcessingMode(str, Enum):
    FAST = "fast"
    BALANCED = "balanced"
    ACCURATE = "accurate"

    @classmethod
    def parse(cls, value: "str | ProcessingMode") -> "ProcessingMode":
        if isinstance(value, ProcessingMode):
            return value
        if not isinstance(value, str):
            raise InvalidModeError(f"Processing mode must be a string, got {type(value).__name__}")
        normalized = value.strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        valid = ", ".join(mode.value for mode in cls)
        raise InvalidModeError(f"Unknown processing mode {value!r} (expected one of: {valid})")


@dataclass(frozen=True)
class ModeProfile:
    scale: float
    blur_kernel: int
    hough_dp: float
    hough_param2: float
    morph_iterations: int
    use_hough_fallback: bool
    fft_downsample: int


_PROFILES = {
    ProcessingMode.FAST: ModeProfile(
        scale=0.5,
        blur_kernel=3,
        hough_dp=1.5,
        hough_param2=32,
        morph_iterations=1,
        use_hough_fallback=False,
        fft_downsample=4,
    ),
    ProcessingMode.BALANCED: ModeProfile(
        scale=0.75,
        blur_kernel=5,
        hough_dp=1.2,
        hough_param2=28,
        morph_iterations=1,
        use_hough_fallback=True,
        fft_downsample=2,
    ),
    ProcessingMode.ACCURATE: ModeProfile(
        scale=1.0,
        blur_kernel=5,
        hough_dp=1.0,
        hough_param2=24,
        morph_iterations=2,
        use_hough_fallback=True,
        fft_downsample=1,
    ),
}


def profile_for(mode: ProcessingMode) -> ModeProfile:
    return _PROFILES[ProcessingMode.parse(mode)]


@dataclass(frozen=True)
class FilterConfig:
    min_area: int = 12
    max_area: Optional[int] = 20000
    min_circularity: float = 0.45
    max_circularity: Optional[float] = None
    min_velocity: float = 0.0
    max_velocity: Optional[float] = None


@dataclass(frozen=True)
class DetectorConfig:
    frame_diff_threshold: float = 18.0
    bg_diff_threshold: float = 14.0
    bg_alpha: float = 0.08
    min_radius_px: int = 4
    max_radius_px: int = 80
    min_consecutive: int = 1
    max_lost_frames: int = 10
    runtime_budget_ms: float = 12.0
    filters: FilterConfig = field(default_factory=FilterConfig)


@dataclass(frozen=True)
class SoccerBallConfig:
    max_saturation: int = 60
    min_value: int = 170
    min_circularity: float = 0.6
    patch_low: float = 0.05
    patch_high: float = 0.5


@dataclass(frozen=True)
class FftConfig:
    low_cut: float = 0.02
    high_cut: float = 0.25
    threshold_k: float = 3.0
    min_area: int = 12
    max_area: int = 20000


@dataclass(frozen=True)
class TargetConfig:
    max_targets: int = 6
    min_radius_ratio: float = 0.04
    max_radius_ratio: float = 0.25
    circularity_threshold: float = 0.82
    match_distance_px: float = 40.0
    canny_low: int = 50
    canny_high: int = 150
    tape_padding_ratio: float = 0.25
    alignment_threshold: float = 0.7


@dataclass(frozen=True)
class MotionConfig:
    diff_threshold: int = 25
    min_area: float = 50.0
    max_regions: int = 20
    dilate_iterations: int = 2


@dataclass(frozen=True)
class LightingConfig:
    target_brightness: float = 128.0
    min_gain: float = 0.5
    max_gain: float = 3.0
    low_contrast_threshold: float = 30.0
    reference_contrast: float = 50.0
    clahe_clip_limit: float = 2.0

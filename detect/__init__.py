"""Detection module."""

from .ball_detector import BallDetector
from .config import (
    DetectorConfig,
    FftConfig,
    FilterConfig,
    LightingConfig,
    ModeProfile,
    MotionConfig,
    ProcessingMode,
    SoccerBallConfig,
    TargetConfig,
    profile_for,
)
from .detector import Detector, DetectorHealth
from .fft_detector import detect_ball_by_fft
from .lighting import LightingProfile, calibrate_lighting, lighting_quality, measure_lighting
from .motion import MotionDetector
from .soccer_ball import detect_soccer_ball
from .targets import TargetDetector

__all__ = [
    "BallDetector",
    "Detector",
    "DetectorConfig",
    "DetectorHealth",
    "FftConfig",
    "FilterConfig",
    "LightingConfig",
    "LightingProfile",
    "ModeProfile",
    "MotionConfig",
    "MotionDetector",
    "ProcessingMode",
    "SoccerBallConfig",
    "TargetConfig",
    "TargetDetector",
    "calibrate_lighting",
    "detect_ball_by_fft",
    "detect_soccer_ball",
    "lighting_quality",
    "measure_lighting",
    "profile_for",
]

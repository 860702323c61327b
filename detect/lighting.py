"""Lighting calibration and frame correction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from detect.config import LightingConfig
from detect.utils import to_grayscale
from log_config.logger import get_logger

logger = get_logger(__name__)

DARK_BRIGHTNESS = 50.0
BRIGHT_BRIGHTNESS = 210.0
LOW_CONTRAST = 20.0


@dataclass(frozen=True)
class LightingProfile:
    gain: float = 1.0
    use_clahe: bool = False
    threshold_scale: float = 1.0
    clahe_clip_limit: float = 2.0
    mean_brightness: Optional[float] = None
    contrast: Optional[float] = None

    @property
    def calibrated(self) -> bool:
        return self.mean_brightness is not None


def measure_lighting(frame: np.ndarray) -> tuple[float, float]:
    """Return (mean brightness, contrast) of a frame on the 0-255 gray scale."""
    gray = to_grayscale(frame)
    mean, std = cv2.meanStdDev(gray)
    return float(mean[0][0]), float(std[0][0])


def lighting_quality(mean_brightness: float, contrast: float) -> str:
    if mean_brightness < DARK_BRIGHTNESS:
        return "dark"
    if mean_brightness > BRIGHT_BRIGHTNESS:
        return "bright"
    if contrast < LOW_CONTRAST:
        return "low_contrast"
    return "good"


def calibrate_lighting(frame: np.ndarray, config: LightingConfig) -> LightingProfile:
    mean_brightness, contrast = measure_lighting(frame)
    if mean_brightness <= 0:
        gain = config.max_gain
    else:
        gain = config.target_brightness / mean_brightness
    gain = float(min(max(gain, config.min_gain), config.max_gain))
    threshold_scale = float(min(max(contrast / config.reference_contrast, 0.5), 1.5))
    profile = LightingProfile(
        gain=gain,
        use_clahe=contrast < config.low_contrast_threshold,
        threshold_scale=threshold_scale,
        clahe_clip_limit=config.clahe_clip_limit,
        mean_brightness=mean_brightness,
        contrast=contrast,
    )
    logger.info(
        f"Lighting calibrated: brightness={mean_brightness:.1f} contrast={contrast:.1f} "
        f"gain={gain:.2f} clahe={profile.use_clahe} threshold_scale={threshold_scale:.2f}"
    )
    return profile


def apply_lighting(gray: np.ndarray, profile: LightingProfile) -> np.ndarray:
    """Apply gain and optional CLAHE to a grayscale image."""
    if not profile.calibrated:
        return gray
    output = gray
    if abs(profile.gain - 1.0) > 1e-3:
        output = cv2.convertScaleAbs(output, alpha=profile.gain, beta=0)
    if profile.use_clahe:
        clahe = cv2.createCLAHE(clipLimit=profile.clahe_clip_limit, tileGridSize=(8, 8))
        output = clahe.apply(output)
    return output


def apply_lighting_bgr(frame: np.ndarray, profile: LightingProfile) -> np.ndarray:
    """Apply the profile to a colour frame through the LAB lightness channel."""
    if not profile.calibrated or frame.ndim == 2:
        return apply_lighting(frame, profile) if frame.ndim == 2 else frame
    lab = cv2.cvtColor(frame, cv2.COLOR_BGR2LAB)
    l_channel, a_channel, b_channel = cv2.split(lab)
    l_channel = apply_lighting(l_channel, profile)
    return cv2.cvtColor(cv2.merge((l_channel, a_channel, b_channel)), cv2.COLOR_LAB2BGR)

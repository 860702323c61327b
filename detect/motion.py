from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from contracts import MotionRegion
from detect.config import DetectorConfig, MotionConfig
from detect.lighting import LightingProfile, apply_lighting
from detect.utils import to_grayscale


def foreground_mask(
    gray: np.ndarray,
    prev_gray: Optional[np.ndarray],
    prev2_gray: Optional[np.ndarray],
    background: Optional[np.ndarray],
    config: DetectorConfig,
    threshold_scale: float = 1.0,
) -> tuple[Optional[np.ndarray], np.ndarray]:
    """Three-frame differencing gated by a running background model.

    A pixel is foreground when the current frame differs from both of the
    two previous frames and from the background, so the position the ball
    just left is not reported. Returns the mask (None until two previous
    frames exist) and the updated background, stored as uint8.
    """
    gray_f32 = gray.astype(np.float32)
    if background is None or background.shape != gray.shape:
        return None, gray.copy()

    background_f32 = background.astype(np.float32)
    updated = config.bg_alpha * gray_f32 + (1 - config.bg_alpha) * background_f32
    background_uint8 = np.clip(updated, 0, 255).astype(np.uint8)

    if (
        prev_gray is None
        or prev2_gray is None
        or prev_gray.shape != gray.shape
        or prev2_gray.shape != gray.shape
    ):
        return None, background_uint8

    frame_threshold = config.frame_diff_threshold * threshold_scale
    diff_prev = np.abs(gray_f32 - prev_gray.astype(np.float32)) > frame_threshold
    diff_prev2 = np.abs(gray_f32 - prev2_gray.astype(np.float32)) > frame_threshold
    bg_diff = np.abs(gray_f32 - background_f32) > config.bg_diff_threshold * threshold_scale

    foreground = diff_prev & diff_prev2 & bg_diff
    return foreground.astype(np.uint8) * 255, background_uint8


class MotionDetector:
    """Frame-to-frame motion regions, independent of ball tracking."""

    def __init__(self, config: Optional[MotionConfig] = None, scale: float = 1.0) -> None:
        self._config = config or MotionConfig()
        self._scale = scale
        self._prev_gray: Optional[np.ndarray] = None

    @property
    def scale(self) -> float:
        return self._scale

    def set_scale(self, scale: float) -> None:
        self._scale = scale
        self.reset()

    def reset(self) -> None:
        self._prev_gray = None

    def detect(
        self, frame: np.ndarray, lighting: Optional[LightingProfile] = None
    ) -> list[MotionRegion]:
        gray = to_grayscale(frame)
        if lighting is not None:
            gray = apply_lighting(gray, lighting)
        if self._scale < 1.0:
            gray = cv2.resize(
                gray, None, fx=self._scale, fy=self._scale, interpolation=cv2.INTER_AREA
            )
        gray = cv2.GaussianBlur(gray, (5, 5), 0)

        prev = self._prev_gray
        self._prev_gray = gray
        if prev is None or prev.shape != gray.shape:
            return []

        diff = cv2.absdiff(gray, prev)
        threshold = self._config.diff_threshold
        if lighting is not None and lighting.calibrated:
            threshold = threshold * lighting.threshold_scale
        _, mask = cv2.threshold(diff, threshold, 255, cv2.THRESH_BINARY)
        if self._config.dilate_iterations > 0:
            mask = cv2.dilate(mask, None, iterations=self._config.dilate_iterations)

        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        inv = 1.0 / self._scale
        regions: list[MotionRegion] = []
        for contour in contours:
            x, y, w, h = cv2.boundingRect(contour)
            area = float(w * h) * inv * inv
            if area < self._config.min_area:
                continue
            intensity = float(np.mean(diff[y : y + h, x : x + w]))
            regions.append(
                MotionRegion(
                    x=int(round(x * inv)),
                    y=int(round(y * inv)),
                    width=int(round(w * inv)),
                    height=int(round(h * inv)),
                    area=area,
                    intensity=intensity,
                )
            )
        regions.sort(key=lambda region: region.area, reverse=True)
        return regions[: self._config.max_regions]

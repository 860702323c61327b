"""Colour and shape detector for a white ball with dark panels."""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from contracts import BallDetection
from detect.config import SoccerBallConfig
from detect.lighting import LightingProfile, apply_lighting_bgr
from detect.utils import circularity, to_bgr, to_grayscale, validate_frame

DARK_PANEL_LEVEL = 80


def patch_score(dark_fraction: float, low: float, high: float) -> float:
    """1.0 inside [low, high], decaying linearly to 0 at 0 and at 1."""
    if low <= dark_fraction <= high:
        return 1.0
    if dark_fraction < low:
        return max(dark_fraction / low, 0.0) if low > 0 else 0.0
    if high >= 1.0:
        return 0.0
    return max(0.0, 1.0 - (dark_fraction - high) / (1.0 - high))


def detect_soccer_ball(
    frame: np.ndarray,
    config: Optional[SoccerBallConfig] = None,
    radius_bounds: Tuple[float, float] = (4.0, 80.0),
    lighting: Optional[LightingProfile] = None,
    velocity: Optional[Tuple[float, float]] = None,
    frame_index: int = 0,
) -> Optional[BallDetection]:
    config = config or SoccerBallConfig()
    frame = validate_frame(frame)
    bgr = to_bgr(frame)
    if lighting is not None and lighting.calibrated:
        bgr = apply_lighting_bgr(bgr, lighting)

    hsv = cv2.cvtColor(bgr, cv2.COLOR_BGR2HSV)
    mask = cv2.inRange(
        hsv,
        np.array([0, 0, config.min_value], dtype=np.uint8),
        np.array([180, config.max_saturation, 255], dtype=np.uint8),
    )
    kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (5, 5))
    mask = cv2.morphologyEx(mask, cv2.MORPH_CLOSE, kernel, iterations=2)
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    if not contours:
        return None

    gray = to_grayscale(bgr)
    min_radius, max_radius = radius_bounds
    best: Optional[Tuple[float, float, float, float, float]] = None
    for contour in contours:
        area = cv2.contourArea(contour)
        circ = circularity(area, cv2.arcLength(contour, closed=True))
        if circ < config.min_circularity:
            continue
        (cx, cy), radius = cv2.minEnclosingCircle(contour)
        if not min_radius <= radius <= max_radius:
            continue

        circle_mask = np.zeros(gray.shape, dtype=np.uint8)
        cv2.circle(circle_mask, (int(round(cx)), int(round(cy))), max(int(radius), 1), 255, -1)
        inside = gray[circle_mask > 0]
        dark_fraction = float(np.mean(inside < DARK_PANEL_LEVEL)) if inside.size else 0.0
        score = min(circ, 1.0) * (0.5 + 0.5 * patch_score(dark_fraction, config.patch_low, config.patch_high))
        if best is None or score > best[0]:
            best = (score, cx, cy, radius, dark_fraction)

    if best is None:
        return None
    score, cx, cy, radius, dark_fraction = best
    vx, vy = velocity if velocity is not None else (None, None)
    return BallDetection(
        x=float(cx),
        y=float(cy),
        radius=float(radius),
        confidence=float(score),
        source="color",
        velocity_x=vx,
        velocity_y=vy,
        frame_index=frame_index,
        extras={"darkFraction": round(dark_fraction, 4)},
    )

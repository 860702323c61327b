"""Frequency-domain ball detector.

The frame is band-pass filtered with an annular mask in the shifted 2D
spectrum. Structures at roughly the ball's spatial scale survive, flat
regions (low frequencies) and pixel noise (high frequencies) do not. The
filtered response is thresholded and the most circular blob is reported.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from contracts import BallDetection
from detect.config import FftConfig
from detect.utils import circularity, to_grayscale, validate_frame

MIN_RESPONSE = 1.0


def band_pass_mask(shape: tuple[int, int], low_cut: float, high_cut: float) -> np.ndarray:
    """Annulus between low_cut and high_cut, as fractions of the half-diagonal."""
    height, width = shape
    cy, cx = height / 2.0, width / 2.0
    yy, xx = np.ogrid[:height, :width]
    dist = np.sqrt((yy - cy) ** 2 + (xx - cx) ** 2)
    max_radius = np.sqrt(cy**2 + cx**2)
    return ((dist >= low_cut * max_radius) & (dist <= high_cut * max_radius)).astype(np.float32)


def band_pass_response(gray: np.ndarray, low_cut: float, high_cut: float) -> np.ndarray:
    data = gray.astype(np.float32)
    spectrum = np.fft.fftshift(np.fft.fft2(data - data.mean()))
    filtered = spectrum * band_pass_mask(data.shape, low_cut, high_cut)
    return np.abs(np.fft.ifft2(np.fft.ifftshift(filtered)))


def blob_peak(response: np.ndarray, contour: np.ndarray) -> int:
    """Maximum of a uint8 response inside the filled contour."""
    x, y, w, h = cv2.boundingRect(contour)
    blob_mask = np.zeros((h, w), dtype=np.uint8)
    cv2.drawContours(blob_mask, [contour], -1, 255, thickness=-1, offset=(-x, -y))
    return int(response[y : y + h, x : x + w][blob_mask > 0].max())


def detect_ball_by_fft(
    frame: np.ndarray,
    config: Optional[FftConfig] = None,
    downsample: int = 1,
    frame_index: int = 0,
) -> Optional[BallDetection]:
    config = config or FftConfig()
    frame = validate_frame(frame)
    gray = to_grayscale(frame)

    factor = max(int(downsample), 1)
    while factor > 1 and min(gray.shape[0], gray.shape[1]) // factor < 8:
        factor //= 2
    if factor > 1:
        gray = cv2.resize(
            gray,
            (gray.shape[1] // factor, gray.shape[0] // factor),
            interpolation=cv2.INTER_AREA,
        )
    scale_back_x = frame.shape[1] / gray.shape[1]
    scale_back_y = frame.shape[0] / gray.shape[0]

    response = band_pass_response(gray, config.low_cut, config.high_cut)
    if float(response.max()) < MIN_RESPONSE:
        return None
    normalized = cv2.normalize(response, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    threshold = float(normalized.mean() + config.threshold_k * normalized.std())
    binary = (normalized > threshold).astype(np.uint8) * 255

    # External contours so a ring-shaped response still reads as one disk
    contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    area_scale = scale_back_x * scale_back_y
    best: Optional[tuple] = None
    for contour in contours:
        area = cv2.contourArea(contour)
        full_area = area * area_scale
        if full_area < config.min_area or full_area > config.max_area:
            continue
        circ = circularity(area, cv2.arcLength(contour, closed=True))
        peak = blob_peak(normalized, contour)
        # Ringing artifacts can be round but respond weaker than the ball edge
        score = min(circ, 1.0) * peak / 255.0
        if best is None or score > best[0]:
            best = (score, peak, contour)

    if best is None:
        return None
    score, peak, contour = best
    (cx, cy), radius = cv2.minEnclosingCircle(contour)
    return BallDetection(
        x=float(cx * scale_back_x),
        y=float(cy * scale_back_y),
        radius=float(radius * (scale_back_x + scale_back_y) / 2.0),
        confidence=float(score),
        source="fft",
        frame_index=frame_index,
        extras={"peakResponse": peak},
    )

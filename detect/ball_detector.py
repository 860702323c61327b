"""Classical CV ball detector using frame differencing, blob filters and a Hough fallback."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from contracts import BallDetection
from detect import telemetry
from detect.config import DetectorConfig, ProcessingMode, profile_for
from detect.detector import Detector, DetectorHealth
from detect.filters import apply_filters, apply_radius_filter
from detect.lighting import LightingProfile, apply_lighting
from detect.motion import foreground_mask
from detect.types import BlobDetection, components_to_blobs, to_ball_detection
from detect.utils import (
    connected_components,
    edge_support,
    odd_kernel,
    resize_for_scale,
    to_grayscale,
    validate_frame,
)
from track.ball_tracker import BallTracker

MIN_HOUGH_SUPPORT = 0.5


@dataclass
class _DetectorState:
    prev_gray: Optional[np.ndarray] = None
    prev2_gray: Optional[np.ndarray] = None
    background: Optional[np.ndarray] = None
    frame_index: int = 0
    last_detection_frame: int = 0
    consecutive_hits: int = 0
    static_circles: List[Tuple[float, float, float]] = field(default_factory=list)


class BallDetector(Detector):
    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        mode: ProcessingMode = ProcessingMode.BALANCED,
        tracker: Optional[BallTracker] = None,
    ) -> None:
        self._config = config or DetectorConfig()
        self._mode = ProcessingMode.parse(mode)
        self._tracker = tracker or BallTracker(max_lost_frames=self._config.max_lost_frames)
        self._state = _DetectorState()

    @property
    def mode(self) -> ProcessingMode:
        return self._mode

    @property
    def tracker(self) -> BallTracker:
        return self._tracker

    @property
    def frame_index(self) -> int:
        return self._state.frame_index

    def set_mode(self, mode: ProcessingMode) -> None:
        mode = ProcessingMode.parse(mode)
        if mode == self._mode:
            return
        self._mode = mode
        # Background is stored at the working scale of the previous mode
        self._state.prev_gray = None
        self._state.prev2_gray = None
        self._state.background = None

    def set_static_circles(self, circles: Sequence[Tuple[float, float, float]]) -> None:
        """Circles printed on the board; the Hough fallback never reports these as the ball."""
        self._state.static_circles = [tuple(map(float, circle)) for circle in circles]

    def detect(
        self, frame: np.ndarray, lighting: Optional[LightingProfile] = None
    ) -> Optional[BallDetection]:
        start = time.perf_counter()
        frame = validate_frame(frame)
        profile = profile_for(self._mode)
        state = self._state
        state.frame_index += 1
        frame_index = state.frame_index

        gray = to_grayscale(frame)
        threshold_scale = 1.0
        if lighting is not None and lighting.calibrated:
            gray = apply_lighting(gray, lighting)
            threshold_scale = lighting.threshold_scale
        small = resize_for_scale(gray, profile.scale)
        kernel = odd_kernel(profile.blur_kernel)
        blurred = cv2.GaussianBlur(small, (kernel, kernel), 0)
        scale_back = gray.shape[1] / blurred.shape[1]

        mask, background = foreground_mask(
            blurred,
            state.prev_gray,
            state.prev2_gray,
            state.background,
            self._config,
            threshold_scale,
        )
        state.prev2_gray = state.prev_gray
        state.prev_gray = blurred
        state.background = background

        source = "motion"
        candidates: List[BlobDetection] = []
        if mask is not None:
            candidates = self._motion_candidates(mask, profile.morph_iterations, scale_back)
        if not candidates and profile.use_hough_fallback:
            source = "hough"
            candidates = self._hough_candidates(blurred, profile.hough_dp, profile.hough_param2, scale_back)

        best = self._select(candidates, frame_index)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        telemetry.log_timing("detect_ball", self._mode.value, elapsed_ms, self._config.runtime_budget_ms)

        if best is None:
            state.consecutive_hits = 0
            self._tracker.mark_missed(frame_index)
            return None

        state.consecutive_hits += 1
        if state.consecutive_hits < self._config.min_consecutive:
            return None

        state.last_detection_frame = frame_index
        track = self._tracker.update(
            best.centroid[0], best.centroid[1], best.equivalent_radius, frame_index
        )
        return to_ball_detection(
            best,
            source=source,
            confidence=min(1.0, max(best.circularity, 0.0)),
            frame_index=frame_index,
            velocity=track.velocity,
            track_id=track.track_id,
        )

    def health(self) -> DetectorHealth:
        return DetectorHealth(
            frames_seen=self._state.frame_index,
            last_detection_frame=self._state.last_detection_frame,
        )

    def reset(self) -> None:
        self._state = _DetectorState()
        self._tracker.reset()

    def _motion_candidates(
        self, mask: np.ndarray, morph_iterations: int, scale_back: float
    ) -> List[BlobDetection]:
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (3, 3))
        mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel, iterations=morph_iterations)
        blobs = [blob.scaled(scale_back) for blob in components_to_blobs(connected_components(mask))]

        last = self._tracker.state().last_point
        if last is not None:
            for blob in blobs:
                blob.velocity = math.hypot(blob.centroid[0] - last.x, blob.centroid[1] - last.y)

        blobs = apply_filters(blobs, self._config.filters)
        return apply_radius_filter(blobs, self._config.min_radius_px, self._config.max_radius_px)

    def _hough_candidates(
        self, blurred: np.ndarray, dp: float, param2: float, scale_back: float
    ) -> List[BlobDetection]:
        min_radius = max(int(self._config.min_radius_px / scale_back), 1)
        max_radius = max(int(self._config.max_radius_px / scale_back), min_radius + 1)
        circles = cv2.HoughCircles(
            blurred,
            cv2.HOUGH_GRADIENT,
            dp=dp,
            minDist=max(min_radius * 2, 8),
            param1=100,
            param2=param2,
            minRadius=min_radius,
            maxRadius=max_radius,
        )
        if circles is None:
            return []

        edges = cv2.dilate(cv2.Canny(blurred, 50, 100), None, iterations=1)
        blobs: List[BlobDetection] = []
        for cx, cy, radius in circles[0]:
            support = edge_support(edges, float(cx), float(cy), float(radius))
            area = int(round(math.pi * radius * radius))
            blob = BlobDetection(
                centroid=(float(cx), float(cy)),
                area=area,
                perimeter=int(round(2 * math.pi * radius)),
                bbox=(
                    int(cx - radius),
                    int(cy - radius),
                    int(cx + radius),
                    int(cy + radius),
                ),
                circularity=support,
                radius=float(radius),
            )
            blobs.append(blob.scaled(scale_back))
        return [
            blob
            for blob in blobs
            if blob.circularity >= MIN_HOUGH_SUPPORT and not self._on_static_circle(blob)
        ]

    def _on_static_circle(self, blob: BlobDetection) -> bool:
        x, y = blob.centroid
        return any(
            math.hypot(x - cx, y - cy) <= radius for cx, cy, radius in self._state.static_circles
        )

    def _select(
        self, candidates: List[BlobDetection], frame_index: int
    ) -> Optional[BlobDetection]:
        if not candidates:
            return None
        predicted = self._tracker.predict(frame_index)
        if predicted is not None:
            px, py = predicted
            return min(
                candidates,
                key=lambda blob: (blob.centroid[0] - px) ** 2 + (blob.centroid[1] - py) ** 2,
            )
        return max(candidates, key=lambda blob: blob.circularity * math.sqrt(blob.area))

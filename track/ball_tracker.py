"""Single-ball tracker using the last two observations for velocity."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from log_config.logger import get_logger
from track.tracker import TrackPoint, TrackState, Tracker

logger = get_logger(__name__)


@dataclass
class TrackerStatistics:
    frames_processed: int = 0
    frames_with_ball: int = 0
    consecutive_detections: int = 0
    lost_frames: int = 0
    speed_total: float = 0.0
    speed_samples: int = 0
    max_speed: float = 0.0

    @property
    def detection_rate(self) -> float:
        if self.frames_processed == 0:
            return 0.0
        return self.frames_with_ball / self.frames_processed

    @property
    def average_speed(self) -> float:
        if self.speed_samples == 0:
            return 0.0
        return self.speed_total / self.speed_samples


class BallTracker(Tracker):
    """Keeps one ball track alive across frames.

    Velocities are in pixels per frame. A track ends after
    ``max_lost_frames`` consecutive misses; the next observation opens a
    new track with a fresh id.
    """

    def __init__(self, max_lost_frames: int = 10, history_size: int = 64) -> None:
        self._max_lost_frames = max_lost_frames
        self._points: Deque[TrackPoint] = deque(maxlen=history_size)
        self._track_id: Optional[int] = None
        self._next_track_id = 1
        self._velocity: Optional[Tuple[float, float]] = None
        self._previous_velocity: Optional[Tuple[float, float]] = None
        self._stats = TrackerStatistics()

    @property
    def statistics(self) -> TrackerStatistics:
        return self._stats

    @property
    def track_id(self) -> Optional[int]:
        return self._track_id

    @property
    def velocity(self) -> Optional[Tuple[float, float]]:
        return self._velocity

    def update(self, x: float, y: float, radius: float, frame_index: int) -> TrackState:
        stats = self._stats
        stats.frames_processed += 1
        stats.frames_with_ball += 1
        stats.consecutive_detections += 1
        stats.lost_frames = 0

        if self._track_id is None or not self._points:
            self._track_id = self._next_track_id
            self._next_track_id += 1
            self._velocity = (0.0, 0.0)
            self._previous_velocity = None
            logger.debug(f"Started ball track {self._track_id} at ({x:.1f}, {y:.1f})")
        else:
            last = self._points[-1]
            dt = frame_index - last.frame_index
            if dt <= 0:
                dt = 1
            velocity = ((x - last.x) / dt, (y - last.y) / dt)
            self._previous_velocity = self._velocity
            self._velocity = velocity
            speed = math.hypot(*velocity)
            stats.speed_total += speed
            stats.speed_samples += 1
            stats.max_speed = max(stats.max_speed, speed)

        self._points.append(TrackPoint(frame_index=frame_index, x=x, y=y, radius=radius))
        return self.state()

    def mark_missed(self, frame_index: int) -> TrackState:
        stats = self._stats
        stats.frames_processed += 1
        stats.consecutive_detections = 0
        stats.lost_frames += 1
        if self._track_id is not None and stats.lost_frames >= self._max_lost_frames:
            logger.debug(
                f"Ball track {self._track_id} lost after {stats.lost_frames} frames (frame {frame_index})"
            )
            self._end_track()
        return self.state()

    def predict(self, frame_index: Optional[int] = None) -> Optional[Tuple[float, float]]:
        if self._track_id is None or not self._points:
            return None
        last = self._points[-1]
        vx, vy = self._velocity or (0.0, 0.0)
        steps = 1 if frame_index is None else max(frame_index - last.frame_index, 1)
        return (last.x + vx * steps, last.y + vy * steps)

    def state(self) -> TrackState:
        return TrackState(
            track_id=self._track_id,
            points=list(self._points),
            velocity=self._velocity,
            previous_velocity=self._previous_velocity,
            lost_frames=self._stats.lost_frames,
        )

    def reset(self) -> None:
        self._end_track()
        self._next_track_id = 1
        self._stats = TrackerStatistics()

    def _end_track(self) -> None:
        self._points.clear()
        self._track_id = None
        self._velocity = None
        self._previous_velocity = None

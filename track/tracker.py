"""Tracking interfaces and track state containers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class TrackPoint:
    frame_index: int
    x: float
    y: float
    radius: float


@dataclass(frozen=True)
class TrackState:
    track_id: Optional[int]
    points: List[TrackPoint]
    velocity: Optional[Tuple[float, float]]
    previous_velocity: Optional[Tuple[float, float]]
    lost_frames: int

    @property
    def is_tracking(self) -> bool:
        return self.track_id is not None and bool(self.points)

    @property
    def last_point(self) -> Optional[TrackPoint]:
        return self.points[-1] if self.points else None


class Tracker(ABC):
    @abstractmethod
    def update(self, x: float, y: float, radius: float, frame_index: int) -> TrackState:
        """Update tracker with a new ball observation."""

    @abstractmethod
    def mark_missed(self, frame_index: int) -> TrackState:
        """Record a frame without an observation."""

    @abstractmethod
    def reset(self) -> None:
        """Drop all track state."""

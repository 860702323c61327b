"""Ball tracking."""

from .ball_tracker import BallTracker, TrackerStatistics
from .tracker import TrackPoint, TrackState, Tracker

__all__ = ["BallTracker", "TrackPoint", "TrackState", "Tracker", "TrackerStatistics"]

"""Shared data contracts for the vision backend."""

from .types import (
    BallDetection,
    Frame,
    MotionRegion,
    Rect,
    TargetDetection,
    TargetScan,
)

__all__ = [
    "BallDetection",
    "Frame",
    "MotionRegion",
    "Rect",
    "TargetDetection",
    "TargetScan",
]

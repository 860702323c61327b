"""Detector interface shared by the ball detectors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np

from contracts import BallDetection
from detect.lighting import LightingProfile


@dataclass(frozen=True)
class DetectorHealth:
    frames_seen: int
    last_detection_frame: int


class Detector(ABC):
    @abstractmethod
    def detect(
        self, frame: np.ndarray, lighting: Optional[LightingProfile] = None
    ) -> Optional[BallDetection]:
        """Return the best ball candidate in the frame, or None."""

    @abstractmethod
    def health(self) -> DetectorHealth:
        """Report detector liveness."""

    def reset(self) -> None:
        """Drop any per-sequence state."""

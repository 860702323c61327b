"""Session state and the live frame pipeline."""

from .detection_manager import DetectionManager
from .live_session import FrameReport, LiveSession

__all__ = ["DetectionManager", "FrameReport", "LiveSession"]

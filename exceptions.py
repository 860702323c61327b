"""Custom exception classes for BounceBack Trainer."""

from __future__ import annotations

from typing import Optional


class BounceBackError(Exception):
    """Base exception for all BounceBack Trainer errors."""

    pass


class ConfigError(BounceBackError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class DetectionError(BounceBackError):
    """Base exception for detection-related errors."""

    pass


class InvalidFrameError(DetectionError, ValueError):
    """Raised when a frame cannot be processed (empty, wrong shape, None)."""

    def __init__(self, message: str, shape: Optional[tuple] = None):
        self.shape = shape
        super().__init__(message)


class InvalidModeError(DetectionError, ValueError):
    """Raised when an unknown processing mode is requested."""

    pass


class VideoError(BounceBackError):
    """Base exception for video file errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class VideoOpenError(VideoError):
    """Raised when an input video is missing or cannot be decoded."""

    pass


class VideoWriteError(VideoError):
    """Raised when the annotated output video cannot be written."""

    pass


class ExportError(BounceBackError):
    """Raised when session data cannot be exported."""

    pass

"""Module-level vision API backed by a shared default engine.

The functions here mirror the frame-analysis surface used by the mobile
app. They all operate on one process-wide ``VisionEngine``; call
``configure`` to replace it with an engine built from a loaded config.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from configs.settings import AppConfig
from vision.engine import VisionEngine
from vision.video import VideoAnalysisSummary

_default_engine: Optional[VisionEngine] = None
_engine_lock = threading.Lock()


def get_default_engine() -> VisionEngine:
    global _default_engine
    with _engine_lock:
        if _default_engine is None:
            _default_engine = VisionEngine()
        return _default_engine


def configure(config: Optional[AppConfig] = None) -> VisionEngine:
    """Replace the default engine with a fresh one built from ``config``."""
    global _default_engine
    with _engine_lock:
        _default_engine = VisionEngine(config)
        return _default_engine


def open_cv_version() -> str:
    return VisionEngine.open_cv_version()


def analyze_video(input_path: Union[str, Path], output_path: Union[str, Path]) -> VideoAnalysisSummary:
    return get_default_engine().analyze_video(input_path, output_path)


def detect_targets_in_frame(frame: np.ndarray, goal_region: Any) -> Dict[str, Any]:
    return get_default_engine().detect_targets_in_frame(frame, goal_region)


def detect_ball_in_frame(frame: np.ndarray) -> Optional[Dict[str, Any]]:
    return get_default_engine().detect_ball_in_frame(frame)


def detect_soccer_ball(frame: np.ndarray) -> Optional[Dict[str, Any]]:
    return get_default_engine().detect_soccer_ball(frame)


def detect_impact_with_ball(
    ball: Optional[Mapping[str, Any]], targets: Sequence[Any], goal_region: Any
) -> bool:
    return get_default_engine().detect_impact_with_ball(ball, targets, goal_region)


def reset_tracking() -> None:
    get_default_engine().reset_tracking()


def analyze_frame_performance(frame: np.ndarray) -> Dict[str, Any]:
    return get_default_engine().analyze_frame_performance(frame)


def detect_motion_in_frame(frame: np.ndarray) -> List[Dict[str, Any]]:
    return get_default_engine().detect_motion_in_frame(frame)


def get_tracking_statistics() -> Dict[str, Any]:
    return get_default_engine().get_tracking_statistics()


def set_processing_mode(mode: str) -> None:
    get_default_engine().set_processing_mode(mode)


def calibrate_for_lighting(frame: np.ndarray) -> None:
    get_default_engine().calibrate_for_lighting(frame)


def detect_ball_by_fft(frame: np.ndarray) -> Optional[Dict[str, Any]]:
    return get_default_engine().detect_ball_by_fft(frame)


__all__ = [
    "VideoAnalysisSummary",
    "VisionEngine",
    "analyze_frame_performance",
    "analyze_video",
    "calibrate_for_lighting",
    "configure",
    "detect_ball_by_fft",
    "detect_ball_in_frame",
    "detect_impact_with_ball",
    "detect_motion_in_frame",
    "detect_soccer_ball",
    "detect_targets_in_frame",
    "get_default_engine",
    "get_tracking_statistics",
    "open_cv_version",
    "reset_tracking",
    "set_processing_mode",
]

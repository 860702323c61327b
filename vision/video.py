"""Annotated copy of a video file with ball and motion overlays."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Deque, Dict, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from exceptions import VideoOpenError, VideoWriteError
from log_config.logger import get_logger

if TYPE_CHECKING:
    from vision.engine import VisionEngine

logger = get_logger(__name__)

BALL_COLOR = (0, 255, 0)
TRAIL_COLOR = (0, 200, 255)
MOTION_COLOR = (255, 128, 0)
TEXT_COLOR = (255, 255, 255)


@dataclass(frozen=True)
class VideoAnalysisSummary:
    input_path: Path
    output_path: Path
    frames_read: int
    frames_with_ball: int
    fps: float
    width: int
    height: int
    codec: str
    # (frame index, ball dict or None) per frame read
    frame_results: List[Tuple[int, Optional[Dict[str, Any]]]] = field(default_factory=list)

    @property
    def detection_rate(self) -> float:
        if self.frames_read == 0:
            return 0.0
        return self.frames_with_ball / self.frames_read


def codec_for(path: Union[str, Path]) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in (".mp4", ".m4v"):
        return "mp4v"
    return "MJPG"


def open_writer(path: Path, width: int, height: int, fps: float, codec: str) -> cv2.VideoWriter:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise VideoWriteError(f"Cannot create output directory for {path}: {exc}", path=str(path)) from exc
    fourcc = cv2.VideoWriter_fourcc(*codec)
    writer = cv2.VideoWriter(str(path), fourcc, fps, (width, height), True)
    if not writer.isOpened():
        writer.release()
        raise VideoWriteError(f"Failed to open VideoWriter for {path} ({codec})", path=str(path))
    return writer


def draw_overlay(
    frame: np.ndarray,
    ball: Optional[Dict[str, Any]],
    trail: Sequence[Tuple[int, int]],
    motion_regions: Sequence[Dict[str, Any]],
    frame_index: int,
) -> np.ndarray:
    output = frame.copy()
    for region in motion_regions:
        x, y = int(region["x"]), int(region["y"])
        cv2.rectangle(
            output, (x, y), (x + int(region["width"]), y + int(region["height"])), MOTION_COLOR, 1
        )
    for older, newer in zip(trail, list(trail)[1:]):
        cv2.line(output, older, newer, TRAIL_COLOR, 2)
    if ball is not None:
        center = (int(round(ball["x"])), int(round(ball["y"])))
        cv2.circle(output, center, max(int(round(ball["radius"])), 2), BALL_COLOR, 2)
        cv2.circle(output, center, 2, BALL_COLOR, -1)
    cv2.putText(
        output,
        f"Frame {frame_index}",
        (10, 24),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.6,
        TEXT_COLOR,
        1,
        cv2.LINE_AA,
    )
    return output


def analyze_video_file(
    engine: "VisionEngine",
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    default_fps: float = 30.0,
    trail_length: int = 32,
) -> VideoAnalysisSummary:
    """Run ball and motion detection over a video and write an annotated copy.

    Raises:
        VideoOpenError: If the input cannot be opened
        VideoWriteError: If the output writer cannot be opened
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    if not input_path.exists():
        raise VideoOpenError(f"Video not found: {input_path}", path=str(input_path))

    capture = cv2.VideoCapture(str(input_path))
    if not capture.isOpened():
        capture.release()
        raise VideoOpenError(f"Failed to open {input_path}", path=str(input_path))

    writer: Optional[cv2.VideoWriter] = None
    codec = codec_for(output_path)
    fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
    if fps <= 0:
        fps = default_fps
    width = height = 0
    frames_read = 0
    frames_with_ball = 0
    frame_results: List[Tuple[int, Optional[Dict[str, Any]]]] = []
    trail: Deque[Tuple[int, int]] = deque(maxlen=max(trail_length, 1))

    logger.info(f"Analyzing {input_path} -> {output_path} ({codec}, {fps:.1f} fps)")
    try:
        while True:
            ok, frame = capture.read()
            if not ok:
                break
            frames_read += 1
            if writer is None:
                height, width = frame.shape[:2]
                writer = open_writer(output_path, width, height, fps, codec)

            ball = engine.detect_ball_in_frame(frame)
            motion = engine.detect_motion_in_frame(frame)
            if ball is not None:
                frames_with_ball += 1
                if trail_length > 0:
                    trail.append((int(round(ball["x"])), int(round(ball["y"]))))
            frame_results.append((frames_read, ball))
            writer.write(draw_overlay(frame, ball, list(trail) if trail_length > 0 else [], motion, frames_read))
    finally:
        capture.release()
        if writer is not None:
            writer.release()

    if frames_read == 0:
        raise VideoOpenError(f"No frames could be read from {input_path}", path=str(input_path))

    summary = VideoAnalysisSummary(
        input_path=input_path,
        output_path=output_path,
        frames_read=frames_read,
        frames_with_ball=frames_with_ball,
        fps=fps,
        width=width,
        height=height,
        codec=codec,
        frame_results=frame_results,
    )
    logger.info(
        f"Analyzed {frames_read} frames, ball found in {frames_with_ball} "
        f"({summary.detection_rate:.0%}), wrote {output_path}"
    )
    return summary

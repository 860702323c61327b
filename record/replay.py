"""Replay a recorded video through the live pipeline and export the session log."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import cv2

from app.live_session import LiveSession
from configs.settings import load_config
from exceptions import BounceBackError, VideoOpenError
from log_config.logger import add_file_sinks, get_logger
from vision.engine import VisionEngine

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the live training pipeline over a video file.")
    parser.add_argument("--video", type=Path, required=True, help="Input video path.")
    parser.add_argument(
        "--goal",
        type=float,
        nargs=4,
        metavar=("X", "Y", "W", "H"),
        required=True,
        help="Goal region in pixels.",
    )
    parser.add_argument("--export-dir", type=Path, default=Path("exports"))
    parser.add_argument("--format", choices=["json", "csv", "both"], default="both")
    parser.add_argument("--mode", choices=["fast", "balanced", "accurate"], default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML config path.")
    parser.add_argument("--logs-dir", type=Path, default=Path("logs"))
    return parser.parse_args(argv)


class VideoClock:
    """Seconds of video time elapsed, advanced once per frame."""

    def __init__(self, fps: float = 30.0) -> None:
        self.fps = fps
        self.frames = 0

    def __call__(self) -> float:
        return self.frames / self.fps

    def tick(self) -> None:
        self.frames += 1


def replay(
    session: LiveSession, video: Path, goal_region, clock: Optional[VideoClock] = None
) -> int:
    """Feed every frame of ``video`` to ``session``; returns frames processed."""
    capture = cv2.VideoCapture(str(video))
    if not capture.isOpened():
        capture.release()
        raise VideoOpenError(f"Failed to open {video}", path=str(video))
    source_fps = capture.get(cv2.CAP_PROP_FPS)
    if clock is not None and source_fps and source_fps > 0:
        clock.fps = float(source_fps)
    frames = 0
    impacts = 0
    try:
        while True:
            ok, frame = capture.read()
            if not ok:
                break
            report = session.process_frame(frame, goal_region)
            frames += 1
            impacts += int(report.impact)
            if clock is not None:
                clock.tick()
    finally:
        capture.release()
    logger.info(f"Replayed {frames} frames from {video}, {impacts} impacts")
    return frames


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    add_file_sinks(args.logs_dir)
    try:
        config = load_config(args.config)
        engine = VisionEngine(config)
        if args.mode:
            engine.set_processing_mode(args.mode)

        # Hit feedback timing follows video time rather than wall time
        clock = VideoClock(config.video.default_fps)
        session = LiveSession(engine=engine, clock=clock)
        replay(session, args.video, tuple(args.goal), clock)

        written = []
        if args.format in ("json", "both"):
            written.append(session.data_logger.export_json(args.export_dir))
        if args.format in ("csv", "both"):
            written.append(session.data_logger.export_csv(args.export_dir))
    except BounceBackError as exc:
        logger.error(f"Replay failed: {exc}")
        return 1

    summary = session.data_logger.summary()
    print(
        f"Frames: {summary['totalFrames']}  impacts: {summary['totalImpacts']}  "
        f"frames with ball: {summary['framesWithBall']}"
    )
    for path in written:
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

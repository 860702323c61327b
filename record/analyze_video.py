"""Write an annotated copy of a recorded video and optional per-frame ball CSV."""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path
from typing import List, Optional

from configs.settings import load_config
from exceptions import BounceBackError
from log_config.logger import add_file_sinks, get_logger
from vision.engine import VisionEngine
from vision.video import VideoAnalysisSummary

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Annotate a recorded video with ball tracking.")
    parser.add_argument("--video", type=Path, required=True, help="Input video path.")
    parser.add_argument("--out", type=Path, required=True, help="Annotated output (.avi or .mp4).")
    parser.add_argument("--csv", type=Path, default=None, help="Optional per-frame ball CSV.")
    parser.add_argument(
        "--mode",
        choices=["fast", "balanced", "accurate"],
        default=None,
        help="Processing mode (defaults to the config value).",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML config path.")
    parser.add_argument("--logs-dir", type=Path, default=Path("logs"))
    return parser.parse_args(argv)


def write_ball_csv(summary: VideoAnalysisSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(
            ["frame_index", "detected", "x", "y", "radius", "confidence", "source", "velocity_x", "velocity_y"]
        )
        for frame_index, ball in summary.frame_results:
            if ball is None:
                writer.writerow([frame_index, 0, "", "", "", "", "", "", ""])
                continue
            writer.writerow(
                [
                    frame_index,
                    1,
                    f"{ball['x']:.2f}",
                    f"{ball['y']:.2f}",
                    f"{ball['radius']:.2f}",
                    f"{ball['confidence']:.3f}",
                    ball["source"],
                    f"{ball['velocityX']:.3f}" if "velocityX" in ball else "",
                    f"{ball['velocityY']:.3f}" if "velocityY" in ball else "",
                ]
            )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    add_file_sinks(args.logs_dir)
    try:
        engine = VisionEngine(load_config(args.config))
        if args.mode:
            engine.set_processing_mode(args.mode)
        summary = engine.analyze_video(args.video, args.out)
        if args.csv is not None:
            write_ball_csv(summary, args.csv)
            logger.info(f"Wrote ball CSV to {args.csv}")
    except BounceBackError as exc:
        logger.error(f"Video analysis failed: {exc}")
        return 1

    print(
        f"Wrote {summary.output_path} ({summary.frames_read} frames, "
        f"ball in {summary.frames_with_ball}, {summary.fps:.1f} fps)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

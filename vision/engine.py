"""Vision engine: the single stateful entry point for frame analysis."""

from __future__ import annotations

import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Mapping, Optional, Sequence, Union

import cv2
import numpy as np
import psutil

from configs.settings import AppConfig
from contracts import TargetScan
from detect.ball_detector import BallDetector
from detect.config import ProcessingMode, profile_for
from detect.fft_detector import detect_ball_by_fft
from detect.lighting import LightingProfile, calibrate_lighting, lighting_quality, measure_lighting
from detect.motion import MotionDetector
from detect.soccer_ball import detect_soccer_ball
from detect.targets import TargetDetector
from detect.utils import compute_focus_score, validate_frame
from log_config.logger import get_logger, log_performance
from metrics.impact import ImpactDetector, ImpactResult
from telemetry.monitor import TelemetryMonitor
from track.ball_tracker import BallTracker
from vision.video import VideoAnalysisSummary, analyze_video_file

logger = get_logger(__name__)

FPS_WINDOW = 30


class VisionEngine:
    """Owns the tracker, detectors and calibration for one camera stream.

    Every public method takes the engine lock, so a capture thread and a
    UI thread may share one engine. Results are plain dictionaries with
    the camelCase keys the front end reads.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self._config = config or AppConfig()
        self._lock = threading.RLock()
        self._mode = ProcessingMode.parse(self._config.processing.mode)
        self._tracker = BallTracker(max_lost_frames=self._config.detector.max_lost_frames)
        self._ball_detector = BallDetector(self._config.detector, self._mode, self._tracker)
        self._motion = MotionDetector(self._config.motion, scale=profile_for(self._mode).scale)
        self._targets = TargetDetector(self._config.targets)
        self._impact = ImpactDetector(self._config.impact)
        self._lighting = LightingProfile()
        self._telemetry = TelemetryMonitor()
        self._call_times: Deque[float] = deque(maxlen=FPS_WINDOW)
        self._process = psutil.Process()

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def mode(self) -> ProcessingMode:
        return self._mode

    @property
    def lighting(self) -> LightingProfile:
        return self._lighting

    @property
    def tracker(self) -> BallTracker:
        return self._tracker

    @staticmethod
    def open_cv_version() -> str:
        return cv2.__version__

    def analyze_video(
        self, input_path: Union[str, Path], output_path: Union[str, Path]
    ) -> VideoAnalysisSummary:
        # A separate engine keeps this one's tracking state untouched
        worker = VisionEngine(self._config)
        worker.set_processing_mode(self._mode)
        return analyze_video_file(
            worker,
            input_path,
            output_path,
            default_fps=self._config.video.default_fps,
            trail_length=self._config.video.trail_length,
        )

    def scan_targets(self, frame: np.ndarray, goal_region: Any) -> TargetScan:
        with self._lock:
            scan = self._targets.detect(frame, goal_region)
            self._ball_detector.set_static_circles(
                [(target.center_x, target.center_y, target.radius) for target in scan.targets]
            )
            return scan

    def detect_targets_in_frame(self, frame: np.ndarray, goal_region: Any) -> Dict[str, Any]:
        return self.scan_targets(frame, goal_region).to_dict()

    def detect_ball_in_frame(self, frame: np.ndarray) -> Optional[Dict[str, Any]]:
        with self._lock:
            start = time.perf_counter()
            detection = self._ball_detector.detect(frame, self._lighting)
            self._telemetry.record_latency_ms((time.perf_counter() - start) * 1000.0)
            return detection.to_dict() if detection is not None else None

    def detect_soccer_ball(self, frame: np.ndarray) -> Optional[Dict[str, Any]]:
        with self._lock:
            detector_config = self._config.detector
            detection = detect_soccer_ball(
                frame,
                self._config.soccer_ball,
                radius_bounds=(detector_config.min_radius_px, detector_config.max_radius_px),
                lighting=self._lighting,
                velocity=self._tracker.velocity,
                frame_index=self._ball_detector.frame_index,
            )
            return detection.to_dict() if detection is not None else None

    def detect_ball_by_fft(self, frame: np.ndarray) -> Optional[Dict[str, Any]]:
        with self._lock:
            detection = detect_ball_by_fft(
                frame,
                self._config.fft,
                downsample=profile_for(self._mode).fft_downsample,
                frame_index=self._ball_detector.frame_index,
            )
            return detection.to_dict() if detection is not None else None

    def check_impact(
        self,
        ball: Optional[Mapping[str, Any]],
        targets: Sequence[Any],
        goal_region: Any,
    ) -> ImpactResult:
        with self._lock:
            previous_velocity = None
            state = self._tracker.state()
            if ball and ball.get("trackId") is not None and ball.get("trackId") == state.track_id:
                previous_velocity = state.previous_velocity
            return self._impact.check(ball, targets, goal_region, previous_velocity)

    def detect_impact_with_ball(
        self,
        ball: Optional[Mapping[str, Any]],
        targets: Sequence[Any],
        goal_region: Any,
    ) -> bool:
        return self.check_impact(ball, targets, goal_region).detected

    def reset_tracking(self) -> None:
        with self._lock:
            self._ball_detector.reset()
            self._motion.reset()
            self._targets.reset()
            self._impact.reset()
            self._telemetry.reset()
            self._call_times.clear()
            logger.info("Tracking state reset")

    def analyze_frame_performance(self, frame: np.ndarray) -> Dict[str, Any]:
        with self._lock:
            start = time.perf_counter()
            frame = validate_frame(frame)
            brightness, contrast = measure_lighting(frame)
            sharpness = compute_focus_score(frame)
            height, width = frame.shape[:2]
            channels = 1 if frame.ndim == 2 else int(frame.shape[2])

            self._call_times.append(start)
            fps = 0.0
            if len(self._call_times) >= 2:
                span = self._call_times[-1] - self._call_times[0]
                if span > 0:
                    fps = (len(self._call_times) - 1) / span
            memory_mb = self._process.memory_info().rss / (1024 * 1024)

            elapsed = time.perf_counter() - start
            self._telemetry.record_latency_ms(elapsed * 1000.0)
            log_performance("analyze_frame_performance", elapsed * 1000.0, threshold_ms=50.0)
            return {
                "processingTime": int(elapsed * 1_000_000),
                "averageBrightness": brightness,
                "contrast": contrast,
                "sharpness": sharpness,
                "width": int(width),
                "height": int(height),
                "channels": channels,
                "processingMode": self._mode.value,
                "fps": round(fps, 2),
                "memoryMB": round(memory_mb, 1),
                "lightingQuality": lighting_quality(brightness, contrast),
            }

    def detect_motion_in_frame(self, frame: np.ndarray) -> List[Dict[str, Any]]:
        with self._lock:
            frame = validate_frame(frame)
            return [region.to_dict() for region in self._motion.detect(frame, self._lighting)]

    def get_tracking_statistics(self) -> Dict[str, Any]:
        with self._lock:
            stats = self._tracker.statistics
            state = self._tracker.state()
            latency = self._telemetry.summarize()
            return {
                "framesProcessed": stats.frames_processed,
                "framesWithBall": stats.frames_with_ball,
                "detectionRate": round(stats.detection_rate, 4),
                "consecutiveDetections": stats.consecutive_detections,
                "lostFrames": stats.lost_frames,
                "isTracking": state.is_tracking,
                "trackId": state.track_id,
                "trackLength": len(state.points),
                "averageSpeed": round(stats.average_speed, 3),
                "maxSpeed": round(stats.max_speed, 3),
                "impactCount": self._impact.impact_count,
                "lastImpactFrame": self._impact.last_impact_frame,
                "lastTargetHit": self._impact.last_target_hit,
                "processingMode": self._mode.value,
                "averageProcessingTimeMs": round(latency.mean_ms, 3),
                "p95ProcessingTimeMs": round(latency.p95_ms, 3),
                "lightingCalibrated": self._lighting.calibrated,
                "brightnessGain": round(self._lighting.gain, 3),
            }

    def set_processing_mode(self, mode: Union[str, ProcessingMode]) -> None:
        parsed = ProcessingMode.parse(mode)
        with self._lock:
            if parsed == self._mode:
                return
            self._mode = parsed
            self._ball_detector.set_mode(parsed)
            self._motion.set_scale(profile_for(parsed).scale)
            logger.info(f"Processing mode set to {parsed.value}")

    def calibrate_for_lighting(self, frame: np.ndarray) -> None:
        frame = validate_frame(frame)
        profile = calibrate_lighting(frame, self._config.lighting)
        with self._lock:
            self._lighting = profile

"""Configuration loading for the vision backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from configs.validator import validate_config
from detect.config import (
    DetectorConfig,
    FftConfig,
    FilterConfig,
    LightingConfig,
    MotionConfig,
    SoccerBallConfig,
    TargetConfig,
)
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger
from metrics.impact import ImpactConfig

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


@dataclass(frozen=True)
class ProcessingConfig:
    mode: str = "balanced"
    lighting_calibration_interval: int = 30


@dataclass(frozen=True)
class GoalLockConfig:
    min_area_ratio: float = 0.01  # 1% of frame
    max_area_ratio: float = 0.80  # 80% of frame
    min_aspect: float = 0.5
    max_aspect: float = 2.5
    required_valid_frames: int = 5


@dataclass(frozen=True)
class LoggerConfig:
    max_frame_data: int = 300  # 10 seconds at 30fps
    assumed_fps: float = 30.0
    hit_hold_s: float = 2.0


@dataclass(frozen=True)
class VideoConfig:
    default_fps: float = 30.0
    trail_length: int = 32


@dataclass(frozen=True)
class AppConfig:
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    soccer_ball: SoccerBallConfig = field(default_factory=SoccerBallConfig)
    fft: FftConfig = field(default_factory=FftConfig)
    targets: TargetConfig = field(default_factory=TargetConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    impact: ImpactConfig = field(default_factory=ImpactConfig)
    lighting: LightingConfig = field(default_factory=LightingConfig)
    goal_lock: GoalLockConfig = field(default_factory=GoalLockConfig)
    logger: LoggerConfig = field(default_factory=LoggerConfig)
    video: VideoConfig = field(default_factory=VideoConfig)


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file; the bundled default.yaml when omitted

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        logger.info(f"Loading configuration from {path}")
        if not path.exists():
            raise InvalidConfigError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Configuration root must be a mapping: {path}")

        # Validate against JSON Schema (fills defaults in place)
        validate_config(data)

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")
    except OSError as e:
        logger.error(f"Failed to read configuration file {path}: {e}")
        raise InvalidConfigError(f"Failed to read configuration file {path}: {e}")

    return config_from_dict(data)


def config_from_dict(data: dict) -> AppConfig:
    """Build an AppConfig from an already validated mapping."""
    try:
        detector_data = dict(data["detector"])
        filters = FilterConfig(**detector_data.pop("filters"))
        config = AppConfig(
            processing=ProcessingConfig(**data["processing"]),
            detector=DetectorConfig(filters=filters, **detector_data),
            soccer_ball=SoccerBallConfig(**data["soccer_ball"]),
            fft=FftConfig(**data["fft"]),
            targets=TargetConfig(**data["targets"]),
            motion=MotionConfig(**data["motion"]),
            impact=ImpactConfig(**data["impact"]),
            lighting=LightingConfig(**data["lighting"]),
            goal_lock=GoalLockConfig(**data["goal_lock"]),
            logger=LoggerConfig(**data["logger"]),
            video=VideoConfig(**data["video"]),
        )
    except KeyError as e:
        logger.error(f"Missing required configuration key: {e}")
        raise InvalidConfigError(f"Missing required configuration key: {e}")
    except TypeError as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    logger.info(f"Configuration loaded: {config.processing.mode} mode, {config.targets.max_targets} max targets")
    return config


__all__ = [
    "AppConfig",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "FftConfig",
    "GoalLockConfig",
    "ImpactConfig",
    "LightingConfig",
    "LoggerConfig",
    "MotionConfig",
    "ProcessingConfig",
    "SoccerBallConfig",
    "TargetConfig",
    "VideoConfig",
    "config_from_dict",
    "load_config",
]

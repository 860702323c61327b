"""Configuration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "processing": {
            "type": "object",
            "default": {},
            "properties": {
                "mode": {
                    "type": "string",
                    "enum": ["fast", "balanced", "accurate"],
                    "default": "balanced",
                },
                "lighting_calibration_interval": {"type": "integer", "minimum": 1, "maximum": 3600, "default": 30},
            },
        },
        "detector": {
            "type": "object",
            "default": {},
            "properties": {
                "frame_diff_threshold": {"type": "number", "minimum": 0, "maximum": 255, "default": 18.0},
                "bg_diff_threshold": {"type": "number", "minimum": 0, "maximum": 255, "default": 14.0},
                "bg_alpha": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.08},
                "min_radius_px": {"type": "integer", "minimum": 1, "maximum": 500, "default": 4},
                "max_radius_px": {"type": "integer", "minimum": 2, "maximum": 2000, "default": 80},
                "min_consecutive": {"type": "integer", "minimum": 1, "maximum": 10, "default": 1},
                "max_lost_frames": {"type": "integer", "minimum": 1, "maximum": 300, "default": 10},
                "runtime_budget_ms": {"type": "number", "minimum": 0.1, "maximum": 1000, "default": 12.0},
                "filters": {
                    "type": "object",
                    "default": {},
                    "properties": {
                        "min_area": {"type": "integer", "minimum": 1, "default": 12},
                        "max_area": {"type": ["integer", "null"], "minimum": 1, "default": 20000},
                        "min_circularity": {"type": "number", "minimum": 0.0, "maximum": 1.5, "default": 0.45},
                        "max_circularity": {"type": ["number", "null"], "minimum": 0.0, "default": None},
                        "min_velocity": {"type": "number", "minimum": 0.0, "default": 0.0},
                        "max_velocity": {"type": ["number", "null"], "minimum": 0.0, "default": None},
                    },
                },
            },
        },
        "soccer_ball": {
            "type": "object",
            "default": {},
            "properties": {
                "max_saturation": {"type": "integer", "minimum": 0, "maximum": 255, "default": 60},
                "min_value": {"type": "integer", "minimum": 0, "maximum": 255, "default": 170},
                "min_circularity": {"type": "number", "minimum": 0.0, "maximum": 1.5, "default": 0.6},
                "patch_low": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.05},
                "patch_high": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.5},
            },
        },
        "fft": {
            "type": "object",
            "default": {},
            "properties": {
                "low_cut": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.02},
                "high_cut": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.25},
                "threshold_k": {"type": "number", "minimum": 0.0, "maximum": 20.0, "default": 3.0},
                "min_area": {"type": "integer", "minimum": 1, "default": 12},
                "max_area": {"type": "integer", "minimum": 1, "default": 20000},
            },
        },
        "targets": {
            "type": "object",
            "default": {},
            "properties": {
                "max_targets": {"type": "integer", "minimum": 1, "maximum": 32, "default": 6},
                "min_radius_ratio": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.04},
                "max_radius_ratio": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.25},
                "circularity_threshold": {"type": "number", "minimum": 0.0, "maximum": 1.5, "default": 0.82},
                "match_distance_px": {"type": "number", "minimum": 1.0, "default": 40.0},
                "canny_low": {"type": "integer", "minimum": 0, "maximum": 255, "default": 50},
                "canny_high": {"type": "integer", "minimum": 0, "maximum": 255, "default": 150},
                "tape_padding_ratio": {"type": "number", "minimum": 0.0, "maximum": 2.0, "default": 0.25},
                "alignment_threshold": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.7},
            },
        },
        "motion": {
            "type": "object",
            "default": {},
            "properties": {
                "diff_threshold": {"type": "integer", "minimum": 1, "maximum": 255, "default": 25},
                "min_area": {"type": "number", "minimum": 0, "default": 50.0},
                "max_regions": {"type": "integer", "minimum": 1, "maximum": 500, "default": 20},
                "dilate_iterations": {"type": "integer", "minimum": 0, "maximum": 10, "default": 2},
            },
        },
        "impact": {
            "type": "object",
            "default": {},
            "properties": {
                "contact_factor": {"type": "number", "minimum": 0.0, "maximum": 5.0, "default": 1.0},
                "min_rebound_speed": {"type": "number", "minimum": 0.0, "default": 3.0},
                "cooldown_frames": {"type": "integer", "minimum": 0, "maximum": 600, "default": 15},
            },
        },
        "lighting": {
            "type": "object",
            "default": {},
            "properties": {
                "target_brightness": {"type": "number", "minimum": 1, "maximum": 255, "default": 128.0},
                "min_gain": {"type": "number", "minimum": 0.05, "maximum": 10.0, "default": 0.5},
                "max_gain": {"type": "number", "minimum": 0.05, "maximum": 10.0, "default": 3.0},
                "low_contrast_threshold": {"type": "number", "minimum": 0, "maximum": 128, "default": 30.0},
                "reference_contrast": {"type": "number", "minimum": 1, "maximum": 128, "default": 50.0},
                "clahe_clip_limit": {"type": "number", "minimum": 0.1, "maximum": 40.0, "default": 2.0},
            },
        },
        "goal_lock": {
            "type": "object",
            "default": {},
            "properties": {
                "min_area_ratio": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.01},
                "max_area_ratio": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.80},
                "min_aspect": {"type": "number", "minimum": 0.0, "default": 0.5},
                "max_aspect": {"type": "number", "minimum": 0.0, "default": 2.5},
                "required_valid_frames": {"type": "integer", "minimum": 1, "maximum": 300, "default": 5},
            },
        },
        "logger": {
            "type": "object",
            "default": {},
            "properties": {
                "max_frame_data": {"type": "integer", "minimum": 1, "default": 300},
                "assumed_fps": {"type": "number", "minimum": 1, "maximum": 1000, "default": 30.0},
                "hit_hold_s": {"type": "number", "minimum": 0.0, "maximum": 60.0, "default": 2.0},
            },
        },
        "video": {
            "type": "object",
            "default": {},
            "properties": {
                "default_fps": {"type": "number", "minimum": 1, "maximum": 1000, "default": 30.0},
                "trail_length": {"type": "integer", "minimum": 0, "maximum": 1000, "default": 32},
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for prop, subschema in properties.items():
                if "default" in subschema:
                    instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema.

    Missing sections and keys are filled in with their schema defaults.

    Args:
        config: Configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]

"""Impact metrics."""

from .impact import (
    ImpactConfig,
    ImpactDetector,
    ImpactResult,
    ball_in_goal,
    circle_contact,
    closest_target,
    contacted_target,
    velocity_reversed,
)

__all__ = [
    "ImpactConfig",
    "ImpactDetector",
    "ImpactResult",
    "ball_in_goal",
    "circle_contact",
    "closest_target",
    "contacted_target",
    "velocity_reversed",
]

"""Telemetry module."""

from .monitor import LatencyStats, TelemetryMonitor

__all__ = ["LatencyStats", "TelemetryMonitor"]

"""Latency tracking for per-frame processing."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque


@dataclass
class LatencyStats:
    p50_ms: float
    p95_ms: float
    max_ms: float
    mean_ms: float


@dataclass
class TelemetryMonitor:
    max_samples: int = 300
    latency_samples_ms: Deque[float] = field(default_factory=deque)

    def record_latency_ms(self, value: float) -> None:
        self.latency_samples_ms.append(value)
        while len(self.latency_samples_ms) > self.max_samples:
            self.latency_samples_ms.popleft()

    def summarize(self) -> LatencyStats:
        if not self.latency_samples_ms:
            return LatencyStats(p50_ms=0.0, p95_ms=0.0, max_ms=0.0, mean_ms=0.0)
        values = sorted(self.latency_samples_ms)
        max_ms = values[-1]
        p50_ms = values[int(0.5 * (len(values) - 1))]
        p95_ms = values[int(0.95 * (len(values) - 1))]
        mean_ms = sum(values) / len(values)
        return LatencyStats(p50_ms=p50_ms, p95_ms=p95_ms, max_ms=max_ms, mean_ms=mean_ms)

    def reset(self) -> None:
        self.latency_samples_ms.clear()

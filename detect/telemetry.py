"""Per-call timing records for the detectors, checked against a runtime budget."""

from __future__ import annotations

from dataclasses import dataclass

from log_config.logger import get_logger

logger = get_logger("telemetry")


@dataclass(frozen=True)
class TimingRecord:
    operation: str
    mode: str
    elapsed_ms: float
    budget_ms: float

    @property
    def over_budget(self) -> bool:
        return self.elapsed_ms > self.budget_ms


def log_timing(operation: str, mode: str, elapsed_ms: float, budget_ms: float) -> TimingRecord:
    record = TimingRecord(operation, mode, elapsed_ms, budget_ms)
    message = f"{operation} [{mode}] took {elapsed_ms:.3f}ms (budget {budget_ms:.1f}ms)"
    if record.over_budget:
        logger.warning(f"Over budget: {message}")
    else:
        logger.debug(message)
    return record

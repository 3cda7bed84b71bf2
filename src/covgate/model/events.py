"""Domain events emitted by evaluation and trend analysis.

Events are returned alongside results rather than collected on a stateful
object; observers (renderers, CI annotators) consume them as plain data.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import ClassVar

from covgate.model.metrics import round1


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class DomainEvent:
    occurred_at: datetime

    event_type: ClassVar[str] = "DomainEvent"


@dataclass(frozen=True, slots=True)
class CoverageEvaluated(DomainEvent):
    policy_name: str
    overall_percent: float
    passed: bool
    domain_count: int
    failed_count: int

    event_type: ClassVar[str] = "CoverageEvaluated"


@dataclass(frozen=True, slots=True)
class ThresholdViolated(DomainEvent):
    domain: str
    actual: float
    required: float

    event_type: ClassVar[str] = "ThresholdViolated"

    @property
    def shortfall(self) -> float:
        return round1(self.required - self.actual)


@dataclass(frozen=True, slots=True)
class CoverageImproved(DomainEvent):
    domain: str
    previous: float
    current: float

    event_type: ClassVar[str] = "CoverageImproved"

    @property
    def delta(self) -> float:
        return round1(self.current - self.previous)


@dataclass(frozen=True, slots=True)
class CoverageRegressed(DomainEvent):
    domain: str
    previous: float
    current: float

    event_type: ClassVar[str] = "CoverageRegressed"

    @property
    def delta(self) -> float:
        """Magnitude of the drop (positive)."""
        return round1(self.previous - self.current)


__all__ = [
    "CoverageEvaluated",
    "CoverageImproved",
    "CoverageRegressed",
    "DomainEvent",
    "ThresholdViolated",
    "utcnow",
]

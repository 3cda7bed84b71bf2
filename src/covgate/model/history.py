"""Coverage history: append-only snapshots of per-domain coverage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covgate.model.coverage import total_of
from covgate.model.events import utcnow
from covgate.model.metrics import round1
from covgate.model.thresholds import determine_status
from covgate.model.types import Status, TrendDirection

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from covgate.model.coverage import CoverageStat
    from covgate.model.policy import Policy


@dataclass(frozen=True, slots=True)
class DomainEntry:
    name: str
    percent: float
    min: float
    status: Status


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    timestamp: datetime
    overall: float
    domains: Mapping[str, DomainEntry] = field(default_factory=dict)
    commit: str = ""
    branch: str = ""


@dataclass(frozen=True, slots=True)
class History:
    """Chronologically ordered, append-only sequence of entries."""

    entries: tuple[HistoryEntry, ...] = ()

    @property
    def latest(self) -> HistoryEntry | None:
        return self.entries[-1] if self.entries else None

    def append(self, entry: HistoryEntry) -> History:
        return History(entries=(*self.entries, entry))

    def entries_after(self, since: datetime) -> tuple[HistoryEntry, ...]:
        return tuple(e for e in self.entries if e.timestamp > since)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, slots=True)
class Trend:
    direction: TrendDirection
    delta: float

    @classmethod
    def stable(cls) -> Trend:
        return cls(direction=TrendDirection.STABLE, delta=0.0)


def calculate_trend(previous: float, current: float) -> Trend:
    """Direction and rounded delta between two percentages."""
    delta = round1(current - previous)
    if delta > 0:
        direction = TrendDirection.UP
    elif delta < 0:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE
    return Trend(direction=direction, delta=delta)


def missing_domains(policy: Policy, coverage: Mapping[str, CoverageStat]) -> list[str]:
    return sorted(name for name in policy.names if name not in coverage)


def build_entry(
    policy: Policy,
    domain_coverage: Mapping[str, CoverageStat],
    *,
    clock: Callable[[], datetime] = utcnow,
    commit: str = "",
    branch: str = "",
) -> tuple[HistoryEntry, list[str]]:
    """Snapshot aggregated domain coverage as a new history entry.

    Configured domains without any coverage produce a warning rather than an
    error; the profile most likely lacked instrumentation for them.
    """
    domains: dict[str, DomainEntry] = {}
    for name in sorted(domain_coverage):
        stat = domain_coverage[name]
        spec = policy.domain(name)
        required = spec.required(policy.default_min) if spec is not None else policy.default_min
        warn = spec.warn if spec is not None else None
        percent = stat.percent
        domains[name] = DomainEntry(
            name=name,
            percent=percent,
            min=required,
            status=determine_status(percent, required, warn),
        )

    entry = HistoryEntry(
        timestamp=clock(),
        overall=total_of(domain_coverage.values()).percent,
        domains=domains,
        commit=commit,
        branch=branch,
    )

    warnings: list[str] = []
    missing = missing_domains(policy, domain_coverage)
    if missing:
        warnings.append(
            "record: profile did not include coverage for domains: "
            f"{', '.join(missing)}; the profile was probably generated without instrumenting them"
        )
    return entry, warnings


__all__ = [
    "DomainEntry",
    "History",
    "HistoryEntry",
    "Trend",
    "build_entry",
    "calculate_trend",
    "missing_domains",
]

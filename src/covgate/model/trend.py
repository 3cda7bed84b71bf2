"""Trend analysis over coverage history: deltas, statistics and prediction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from covgate.model.events import CoverageImproved, CoverageRegressed, utcnow
from covgate.model.history import Trend, calculate_trend
from covgate.model.metrics import round1
from covgate.model.types import FULL_COVERAGE, SIGNIFICANT_CHANGE, STABLE_BAND, TrendDirection

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from datetime import datetime

    from covgate.model.events import DomainEvent
    from covgate.model.history import HistoryEntry

OVERALL = "overall"
DEFAULT_LOOKBACK = 10
SINGLE_POINT_CONFIDENCE = 50.0


@dataclass(frozen=True, slots=True)
class DomainTrend:
    name: str
    previous: float
    current: float
    trend: Trend


@dataclass(frozen=True, slots=True)
class TrendAnalysis:
    previous: float = 0.0
    current: float = 0.0
    overall: Trend = field(default_factory=Trend.stable)
    domains: Mapping[str, DomainTrend] = field(default_factory=dict)
    period: timedelta = timedelta(0)

    @property
    def is_improving(self) -> bool:
        return self.overall.direction is TrendDirection.UP

    @property
    def is_regressing(self) -> bool:
        return self.overall.direction is TrendDirection.DOWN


def _significance_events(
    name: str,
    previous: float,
    current: float,
    trend: Trend,
    clock: Callable[[], datetime],
) -> list[DomainEvent]:
    if trend.direction is TrendDirection.UP and trend.delta > SIGNIFICANT_CHANGE:
        return [CoverageImproved(occurred_at=clock(), domain=name, previous=previous, current=current)]
    if trend.direction is TrendDirection.DOWN and trend.delta < -SIGNIFICANT_CHANGE:
        return [CoverageRegressed(occurred_at=clock(), domain=name, previous=previous, current=current)]
    return []


def domain_trends(
    previous: Mapping[str, float],
    current: Mapping[str, float],
) -> dict[str, Trend]:
    """Per-domain trends; domains new in ``current`` are reported as stable."""
    out: dict[str, Trend] = {}
    for name in sorted(current):
        if name in previous:
            out[name] = calculate_trend(previous[name], current[name])
        else:
            out[name] = Trend.stable()
    return out


def analyze_trend(
    previous_entry: HistoryEntry | None,
    current_entry: HistoryEntry | None,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> tuple[TrendAnalysis, list[DomainEvent]]:
    """Compare two snapshots and raise improved/regressed events for changes over 1 point."""
    if previous_entry is None or current_entry is None:
        return TrendAnalysis(), []

    previous = round1(previous_entry.overall)
    current = round1(current_entry.overall)
    overall = calculate_trend(previous, current)

    prev_domains = {name: round1(d.percent) for name, d in previous_entry.domains.items()}
    cur_domains = {name: round1(d.percent) for name, d in current_entry.domains.items()}
    trends = domain_trends(prev_domains, cur_domains)
    domains = {
        name: DomainTrend(
            name=name,
            previous=prev_domains.get(name, cur_domains[name]),
            current=cur_domains[name],
            trend=trend,
        )
        for name, trend in trends.items()
    }

    events = _significance_events(OVERALL, previous, current, overall, clock)
    for d in domains.values():
        events.extend(_significance_events(d.name, d.previous, d.current, d.trend, clock))

    analysis = TrendAnalysis(
        previous=previous,
        current=current,
        overall=overall,
        domains=domains,
        period=current_entry.timestamp - previous_entry.timestamp,
    )
    return analysis, events


@dataclass(frozen=True, slots=True)
class HistoryStats:
    """Statistics over a window of history entries."""

    entries_count: int = 0
    highest: float = 0.0
    lowest: float = 0.0
    average: float = 0.0
    up_days: int = 0
    down_days: int = 0
    stable_days: int = 0
    period: timedelta = timedelta(0)

    @property
    def volatility(self) -> float:
        """Share of steps that moved more than the dead band (0..1)."""
        steps = self.up_days + self.down_days + self.stable_days
        if self.entries_count <= 1 or steps == 0:
            return 0.0
        return (self.up_days + self.down_days) / steps

    @property
    def consistency_score(self) -> float:
        """100 for a flat series, decreasing with the highest-lowest spread."""
        if self.entries_count <= 1:
            return float(FULL_COVERAGE)
        return round1(FULL_COVERAGE - (self.highest - self.lowest))


def analyze_history(entries: Sequence[HistoryEntry]) -> HistoryStats:
    if not entries:
        return HistoryStats()

    values = [e.overall for e in entries]
    up = down = stable = 0
    for prev, cur in zip(values, values[1:], strict=False):
        delta = cur - prev
        if delta > STABLE_BAND:
            up += 1
        elif delta < -STABLE_BAND:
            down += 1
        else:
            stable += 1

    return HistoryStats(
        entries_count=len(values),
        highest=round1(max(values)),
        lowest=round1(min(values)),
        average=round1(sum(values) / len(values)),
        up_days=up,
        down_days=down,
        stable_days=stable,
        period=entries[-1].timestamp - entries[0].timestamp,
    )


@dataclass(frozen=True, slots=True)
class Prediction:
    value: float
    confidence: float


def predict_next(entries: Sequence[HistoryEntry], lookback: int = DEFAULT_LOOKBACK) -> Prediction:
    """Least-squares linear extrapolation of the next overall percentage.

    x is the entry index within the last ``lookback`` entries, y the overall
    percentage. The prediction is clamped to [0, 100]; confidence shrinks
    with the mean squared residual of the fit.
    """
    if not entries:
        return Prediction(value=0.0, confidence=0.0)
    window = list(entries[-max(lookback, 1) :])
    if len(window) < 2:  # noqa: PLR2004
        return Prediction(value=round1(window[-1].overall), confidence=SINGLE_POINT_CONFIDENCE)

    n = float(len(window))
    xs = [float(i) for i in range(len(window))]
    ys = [e.overall for e in window]
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys, strict=True))
    sum_x2 = sum(x * x for x in xs)

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    predicted = min(max(slope * n + intercept, 0.0), float(FULL_COVERAGE))

    variance = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, ys, strict=True)) / n
    confidence = 1.0 / (1.0 + variance / 100)
    return Prediction(value=round1(predicted), confidence=round1(confidence * 100))


__all__ = [
    "DEFAULT_LOOKBACK",
    "OVERALL",
    "DomainTrend",
    "HistoryStats",
    "Prediction",
    "TrendAnalysis",
    "analyze_history",
    "analyze_trend",
    "domain_trends",
    "predict_next",
]

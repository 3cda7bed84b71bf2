"""Threshold evaluation of aggregated coverage against a policy.

``evaluate`` is pure: it returns the result together with the domain events
describing it, and never mutates its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from covgate.model.coverage import EMPTY, CoverageStat, total_of
from covgate.model.events import CoverageEvaluated, ThresholdViolated, utcnow
from covgate.model.metrics import pct, round1
from covgate.model.path_filter import matches_any
from covgate.model.types import Status

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping, Sequence
    from datetime import datetime

    from covgate.model.events import DomainEvent
    from covgate.model.history import History
    from covgate.model.policy import Annotation, DomainSpec, FileRule, Policy

POLICY_NAME = "default"


def determine_status(percent: float, required: float, warn: float | None = None) -> Status:
    """``FAIL`` below ``required``; ``WARN`` below ``warn``; else ``PASS`` (boundaries inclusive)."""
    if percent < required:
        return Status.FAIL
    if warn is not None and percent < warn:
        return Status.WARN
    return Status.PASS


def shortfall(percent: float, required: float) -> float:
    return 0.0 if percent >= required else round1(required - percent)


@dataclass(frozen=True, slots=True)
class DomainResult:
    name: str
    stat: CoverageStat
    percent: float
    required: float
    status: Status
    shortfall: float = 0.0
    delta: float | None = None  # change versus the latest history entry


@dataclass(frozen=True, slots=True)
class FileResult:
    file: str
    stat: CoverageStat
    percent: float
    required: float
    status: Status

    @property
    def shortfall(self) -> float:
        return shortfall(self.percent, self.required)


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Outcome of evaluating a policy.

    A policy violation is ordinary data here (``passed=False``); it is never
    raised as an exception.
    """

    domains: tuple[DomainResult, ...] = ()
    files: tuple[FileResult, ...] = ()
    passed: bool = True
    warnings: tuple[str, ...] = ()

    @property
    def overall_percent(self) -> float:
        total = total_of(d.stat for d in self.domains)
        return total.percent

    def count(self, status: Status) -> int:
        return sum(1 for d in self.domains if d.status is status)

    @property
    def failing_count(self) -> int:
        return self.count(Status.FAIL)

    @property
    def passing_count(self) -> int:
        return self.count(Status.PASS)

    @property
    def warning_count(self) -> int:
        return self.count(Status.WARN)

    def domain(self, name: str) -> DomainResult | None:
        return next((d for d in self.domains if d.name == name), None)

    @property
    def summary(self) -> str:
        return "All coverage thresholds met" if self.passed else "Coverage thresholds not met"


def _evaluate_domain(spec: DomainSpec, stat: CoverageStat, default_min: float) -> DomainResult:
    percent = stat.percent
    required = spec.required(default_min)
    return DomainResult(
        name=spec.name,
        stat=stat,
        percent=percent,
        required=required,
        status=determine_status(percent, required, spec.warn),
        shortfall=shortfall(percent, required),
    )


def evaluate(
    policy: Policy,
    coverage: Mapping[str, CoverageStat],
    *,
    clock: Callable[[], datetime] = utcnow,
) -> tuple[EvaluationResult, list[DomainEvent]]:
    """Evaluate per-domain coverage against ``policy``.

    Domains absent from ``coverage`` evaluate as empty (0%). Returns the
    result and the events raised: one ``ThresholdViolated`` per failing
    domain followed by a single ``CoverageEvaluated``.
    """
    events: list[DomainEvent] = []
    results: list[DomainResult] = []
    for spec in policy.domains:
        result = _evaluate_domain(spec, coverage.get(spec.name, EMPTY), policy.default_min)
        if result.status is Status.FAIL:
            events.append(
                ThresholdViolated(
                    occurred_at=clock(),
                    domain=result.name,
                    actual=result.percent,
                    required=result.required,
                )
            )
        results.append(result)

    evaluation = EvaluationResult(
        domains=tuple(results),
        passed=all(r.status is not Status.FAIL for r in results),
    )
    events.append(
        CoverageEvaluated(
            occurred_at=clock(),
            policy_name=POLICY_NAME,
            overall_percent=evaluation.overall_percent,
            passed=evaluation.passed,
            domain_count=len(results),
            failed_count=evaluation.failing_count,
        )
    )
    return evaluation, events


def evaluate_file_rules(
    coverage: Mapping[str, CoverageStat],
    rules: Sequence[FileRule],
    *,
    exclude: Sequence[str] = (),
    annotations: Mapping[str, Annotation] | None = None,
) -> tuple[tuple[FileResult, ...], bool]:
    """Evaluate per-file rules; a file's requirement is the max ``min`` of all matching rules."""
    if not rules:
        return (), True

    annotations = annotations or {}
    required_by_file: dict[str, float] = {}
    for file in coverage:
        if exclude and matches_any(file, exclude):
            continue
        ann = annotations.get(file)
        if ann is not None and ann.ignore:
            continue
        for rule in rules:
            if matches_any(file, rule.match):
                required_by_file[file] = max(required_by_file.get(file, 0.0), rule.min)

    results: list[FileResult] = []
    for file in sorted(required_by_file):
        stat = coverage[file]
        percent = pct(stat.covered, stat.total)
        required = required_by_file[file]
        results.append(
            FileResult(
                file=file,
                stat=stat,
                percent=percent,
                required=required,
                status=determine_status(percent, required),
            )
        )
    passed = all(r.status is not Status.FAIL for r in results)
    return tuple(results), passed


def filter_coverage(
    coverage: Mapping[str, CoverageStat],
    allowed: Collection[str] | None,
) -> dict[str, CoverageStat]:
    """Keep only files in ``allowed``; ``None`` means no filtering (diff mode off)."""
    if allowed is None:
        return dict(coverage)
    return {file: stat for file, stat in coverage.items() if file in allowed}


def drop_empty_domains(policy: Policy, coverage: Mapping[str, CoverageStat]) -> Policy:
    """Remove domains whose aggregated total is zero (diff mode: untouched domains)."""
    kept = tuple(d for d in policy.domains if coverage.get(d.name, EMPTY).total > 0)
    return replace(policy, domains=kept)


def with_deltas(result: EvaluationResult, history: History) -> EvaluationResult:
    """Return a copy of ``result`` carrying per-domain deltas versus the latest entry."""
    latest = history.latest
    if latest is None:
        return result
    domains: list[DomainResult] = []
    for d in result.domains:
        previous = latest.domains.get(d.name)
        if previous is None:
            domains.append(d)
        else:
            domains.append(replace(d, delta=round1(d.percent - previous.percent)))
    return replace(result, domains=tuple(domains))


__all__ = [
    "POLICY_NAME",
    "DomainResult",
    "EvaluationResult",
    "FileResult",
    "determine_status",
    "drop_empty_domains",
    "evaluate",
    "evaluate_file_rules",
    "filter_coverage",
    "shortfall",
    "with_deltas",
]

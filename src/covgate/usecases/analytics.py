"""Threshold suggestions, coverage debt and profile comparison."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from covgate.model.config import Config
from covgate.model.coverage import EMPTY, total_of
from covgate.model.metrics import round1
from covgate.model.thresholds import evaluate_file_rules
from covgate.model.types import FULL_COVERAGE, SuggestStrategy
from covgate.usecases.config import load_or_detect
from covgate.usecases.pipeline import aggregate_domains, load_file_coverage, prepare_coverage, profile_paths

if TYPE_CHECKING:
    from collections.abc import Mapping

    from covgate.model.coverage import CoverageStat
    from covgate.model.policy import Policy
    from covgate.usecases.ports import AnnotationScanner, Autodetector, ConfigLoader, DomainResolver, ProfileSource

AGGRESSIVE_STEP = 5.0
AGGRESSIVE_CAP = 95.0
CONSERVATIVE_STEP = 5.0
CURRENT_BUFFER = 2.0
SUGGESTION_FLOOR = 50.0
# Per-file changes at or below this many points count as unchanged.
COMPARE_NOISE = 0.1


@dataclass(frozen=True, slots=True)
class Suggestion:
    domain: str
    current_percent: float
    current_min: float
    suggested_min: float
    reason: str


@dataclass(frozen=True, slots=True)
class SuggestResult:
    suggestions: tuple[Suggestion, ...]
    policy: Policy


@dataclass(frozen=True, slots=True)
class DebtItem:
    name: str
    kind: str  # "domain" or "file"
    current: float
    required: float
    shortfall: float
    lines: int


@dataclass(frozen=True, slots=True)
class DebtReport:
    items: tuple[DebtItem, ...] = ()
    total_debt: float = 0.0
    total_lines: int = 0
    health_score: float = float(FULL_COVERAGE)


@dataclass(frozen=True, slots=True)
class FileDelta:
    file: str
    base: float
    head: float
    delta: float


@dataclass(frozen=True, slots=True)
class CompareReport:
    base_overall: float
    head_overall: float
    delta: float
    improved: tuple[FileDelta, ...] = ()
    regressed: tuple[FileDelta, ...] = ()
    unchanged: int = 0
    domain_deltas: Mapping[str, float] = field(default_factory=dict)


def calculate_suggestion(current: float, current_min: float, strategy: SuggestStrategy) -> tuple[float, str]:
    """Suggested minimum for a domain at ``current`` percent, with a short reason."""
    if strategy is SuggestStrategy.AGGRESSIVE:
        suggested = min(current + AGGRESSIVE_STEP, AGGRESSIVE_CAP)
        if suggested > current_min:
            return round1(suggested), "push for improvement (+5%)"
        return current_min, "already at or above aggressive target"

    if strategy is SuggestStrategy.CONSERVATIVE:
        suggested = max(current - CONSERVATIVE_STEP, current_min, SUGGESTION_FLOOR)
        return round1(suggested), "gradual improvement target"

    suggested = current - CURRENT_BUFFER
    if suggested < current_min:
        return current_min, "keep current threshold (coverage near minimum)"
    return round1(max(suggested, SUGGESTION_FLOOR)), "based on current coverage (-2% buffer)"


def lines_to_target(stat: CoverageStat, required: float) -> int:
    """Additional covered statements needed to reach ``required`` percent."""
    needed = math.ceil(required * stat.total / FULL_COVERAGE) - stat.covered
    return min(max(needed, 0), stat.uncovered)


@dataclass(slots=True)
class AnalyticsService:
    config_loader: ConfigLoader
    autodetector: Autodetector
    resolver: DomainResolver
    profiles: ProfileSource
    annotations: AnnotationScanner | None = None
    base_dir: Path = field(default_factory=Path.cwd)

    def suggest(
        self,
        strategy: SuggestStrategy = SuggestStrategy.CURRENT,
        *,
        config_path: Path | None = None,
        profile: str | Path | None = None,
    ) -> SuggestResult:
        cfg = load_or_detect(self.config_loader, self.autodetector, config_path)
        ctx = prepare_coverage(
            cfg=cfg,
            policy=cfg.policy,
            paths=profile_paths(cfg, profile, base=self.base_dir),
            profiles=self.profiles,
            resolver=self.resolver,
            scanner=self.annotations,
        )
        suggestions: list[Suggestion] = []
        domains = []
        for spec in cfg.policy.domains:
            current = ctx.domain_coverage.get(spec.name, EMPTY).percent
            current_min = spec.required(cfg.policy.default_min)
            suggested, reason = calculate_suggestion(current, current_min, strategy)
            suggestions.append(
                Suggestion(
                    domain=spec.name,
                    current_percent=current,
                    current_min=current_min,
                    suggested_min=suggested,
                    reason=reason,
                )
            )
            domains.append(replace(spec, min=suggested))
        return SuggestResult(suggestions=tuple(suggestions), policy=replace(cfg.policy, domains=tuple(domains)))

    def debt(self, *, config_path: Path | None = None, profile: str | Path | None = None) -> DebtReport:
        """Domains and files below their minimum, largest shortfall first."""
        cfg = load_or_detect(self.config_loader, self.autodetector, config_path)
        ctx = prepare_coverage(
            cfg=cfg,
            policy=cfg.policy,
            paths=profile_paths(cfg, profile, base=self.base_dir),
            profiles=self.profiles,
            resolver=self.resolver,
            scanner=self.annotations,
        )

        items: list[DebtItem] = []
        passing = 0
        for spec in cfg.policy.domains:
            stat = ctx.domain_coverage.get(spec.name, EMPTY)
            required = spec.required(cfg.policy.default_min)
            if stat.percent >= required:
                passing += 1
                continue
            items.append(
                DebtItem(
                    name=spec.name,
                    kind="domain",
                    current=stat.percent,
                    required=required,
                    shortfall=round1(required - stat.percent),
                    lines=lines_to_target(stat, required),
                )
            )

        files, _ = evaluate_file_rules(
            ctx.file_coverage,
            cfg.files,
            exclude=cfg.exclude,
            annotations=ctx.annotations,
        )
        for fr in files:
            if fr.percent >= fr.required:
                passing += 1
                continue
            items.append(
                DebtItem(
                    name=fr.file,
                    kind="file",
                    current=fr.percent,
                    required=fr.required,
                    shortfall=fr.shortfall,
                    lines=lines_to_target(fr.stat, fr.required),
                )
            )

        items.sort(key=lambda item: -item.shortfall)
        evaluated = passing + len(items)
        health = round1(passing / evaluated * FULL_COVERAGE) if evaluated else float(FULL_COVERAGE)
        return DebtReport(
            items=tuple(items),
            total_debt=round1(sum(item.shortfall for item in items)),
            total_lines=sum(item.lines for item in items),
            health_score=health,
        )

    def compare(self, base: Path, head: Path, *, config_path: Path | None = None) -> CompareReport:
        """Per-file and per-domain coverage change from ``base`` to ``head``.

        Domain deltas are only computed when a configuration file exists.
        """
        cfg = None
        if self.config_loader.exists(config_path):
            cfg = load_or_detect(self.config_loader, self.autodetector, config_path)

        effective = cfg or Config()
        normalizer, base_cov = load_file_coverage(self.profiles, self.resolver, effective, [Path(base)])
        _, head_cov = load_file_coverage(self.profiles, self.resolver, effective, [Path(head)])

        base_overall = total_of(base_cov.values()).percent
        head_overall = total_of(head_cov.values()).percent

        improved: list[FileDelta] = []
        regressed: list[FileDelta] = []
        unchanged = 0
        for file in sorted(set(base_cov) | set(head_cov)):
            before = base_cov.get(file, EMPTY).percent
            after = head_cov.get(file, EMPTY).percent
            delta = round1(after - before)
            if delta > COMPARE_NOISE:
                improved.append(FileDelta(file=file, base=before, head=after, delta=delta))
            elif delta < -COMPARE_NOISE:
                regressed.append(FileDelta(file=file, base=before, head=after, delta=delta))
            else:
                unchanged += 1
        improved.sort(key=lambda d: -d.delta)
        regressed.sort(key=lambda d: d.delta)

        domain_deltas: dict[str, float] = {}
        if cfg is not None:
            domain_dirs = self.resolver.resolve(cfg.policy.domains)
            base_domains = aggregate_domains(normalizer, base_cov, domain_dirs, cfg, cfg.policy.domains, {})
            head_domains = aggregate_domains(normalizer, head_cov, domain_dirs, cfg, cfg.policy.domains, {})
            for spec in cfg.policy.domains:
                before = base_domains.get(spec.name, EMPTY).percent
                after = head_domains.get(spec.name, EMPTY).percent
                domain_deltas[spec.name] = round1(after - before)

        return CompareReport(
            base_overall=base_overall,
            head_overall=head_overall,
            delta=round1(head_overall - base_overall),
            improved=tuple(improved),
            regressed=tuple(regressed),
            unchanged=unchanged,
            domain_deltas=domain_deltas,
        )


__all__ = [
    "AnalyticsService",
    "CompareReport",
    "DebtItem",
    "DebtReport",
    "FileDelta",
    "SuggestResult",
    "Suggestion",
    "calculate_suggestion",
    "lines_to_target",
]

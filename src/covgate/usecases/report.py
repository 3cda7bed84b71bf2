"""Non-enforcing coverage reports and the ``ignore`` overview."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.engine.aggregate import AggregationInput, classify, is_globally_excluded
from covgate.model.metrics import pct
from covgate.model.thresholds import EvaluationResult, FileResult
from covgate.model.types import Status
from covgate.usecases.check import CheckOptions, CheckOutcome, CheckService, apply_overrides
from covgate.usecases.config import load_or_detect
from covgate.usecases.pipeline import (
    domain_excludes,
    load_file_coverage,
    profile_paths,
    scan_annotations,
    select_domains,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from covgate.engine.aggregate import Classification
    from covgate.model.coverage import CoverageStat
    from covgate.model.policy import Annotation, DomainSpec
    from covgate.usecases.ports import HistoryStore


@dataclass(frozen=True, slots=True)
class ReportOptions:
    config_path: Path | None = None
    profile: str | Path | None = None
    domains: tuple[str, ...] = ()
    history: HistoryStore | None = None
    uncovered: bool = False
    diff_ref: str | None = None
    merge: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class IgnoreInfo:
    """Configured exclusions plus the files they (or annotations) remove."""

    exclude: tuple[str, ...] = ()
    domains: tuple[DomainSpec, ...] = ()
    files: tuple[Classification, ...] = ()

    @property
    def ignored_files(self) -> tuple[str, ...]:
        return tuple(sorted({c.file for c in self.files if c.annotated}))


def uncovered_files(
    coverage: Mapping[str, CoverageStat],
    *,
    exclude: tuple[str, ...] = (),
    annotations: Mapping[str, Annotation] | None = None,
) -> EvaluationResult:
    """Files with statements but 0% coverage, skipping excluded and ignored files."""
    annotations = annotations or {}
    results: list[FileResult] = []
    for file in sorted(coverage):
        stat = coverage[file]
        if is_globally_excluded(file, exclude):
            continue
        ann = annotations.get(file)
        if ann is not None and ann.ignore:
            continue
        if stat.total > 0 and pct(stat.covered, stat.total) == 0:
            results.append(FileResult(file=file, stat=stat, percent=0.0, required=0.0, status=Status.FAIL))
    warnings = (f"{len(results)} files have 0% coverage",) if results else ()
    return EvaluationResult(files=tuple(results), passed=not results, warnings=warnings)


@dataclass(slots=True)
class ReportService:
    """Like ``check`` but the caller never fails the run on policy violations."""

    checker: CheckService

    def report(self, options: ReportOptions) -> CheckOutcome:
        if options.uncovered:
            return CheckOutcome(result=self._uncovered(options))
        return self.checker.check(
            CheckOptions(
                config_path=options.config_path,
                profile=options.profile,
                domains=options.domains,
                history=options.history,
                diff_ref=options.diff_ref,
                merge=options.merge,
            )
        )

    def _uncovered(self, options: ReportOptions) -> EvaluationResult:
        checker = self.checker
        cfg = load_or_detect(checker.config_loader, checker.autodetector, options.config_path)
        cfg = apply_overrides(cfg, merge=options.merge)
        select_domains(cfg.policy, options.domains)
        paths = profile_paths(cfg, options.profile, base=checker.base_dir)
        normalizer, coverage = load_file_coverage(checker.profiles, checker.resolver, cfg, paths)
        annotations = scan_annotations(checker.annotations, cfg, normalizer.module_root, coverage)
        result = uncovered_files(coverage, exclude=cfg.exclude, annotations=annotations)
        logger.info("%d uncovered file(s)", len(result.files))
        return result

    def ignore(self, *, config_path: Path | None = None, profile: str | Path | None = None) -> IgnoreInfo:
        """Excludes from the configuration; with a profile, also the files they drop.

        Files are only classified when ``profile`` is given or the
        configuration names one.
        """
        checker = self.checker
        cfg = load_or_detect(checker.config_loader, checker.autodetector, config_path)
        info = IgnoreInfo(exclude=cfg.exclude, domains=cfg.policy.domains)
        if profile is None and not cfg.profile.path:
            return info

        paths = profile_paths(cfg, profile, base=checker.base_dir)
        normalizer, coverage = load_file_coverage(checker.profiles, checker.resolver, cfg, paths)
        annotations = scan_annotations(checker.annotations, cfg, normalizer.module_root, coverage)
        classified = classify(
            AggregationInput(
                file_coverage=coverage,
                domain_dirs=checker.resolver.resolve(cfg.policy.domains),
                global_excludes=cfg.exclude,
                domain_excludes=domain_excludes(cfg.policy.domains),
                annotations=annotations,
            ),
            normalizer,
        )
        excluded = sorted((c for c in classified if c.excluded), key=lambda c: (c.file, c.domain or ""))
        return IgnoreInfo(exclude=cfg.exclude, domains=cfg.policy.domains, files=tuple(excluded))


__all__ = ["IgnoreInfo", "ReportOptions", "ReportService", "uncovered_files"]

"""The ``check`` use case: evaluate a coverage profile against the configured policy."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.engine.aggregate import overlap_warnings
from covgate.errors import HistoryError
from covgate.model.events import utcnow
from covgate.model.path_filter import to_key
from covgate.model.thresholds import (
    EvaluationResult,
    drop_empty_domains,
    evaluate,
    evaluate_file_rules,
    filter_coverage,
    with_deltas,
)
from covgate.usecases.config import load_or_detect
from covgate.usecases.pipeline import (
    aggregate_domains,
    load_file_coverage,
    profile_paths,
    scan_annotations,
    select_domains,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covgate.model.config import Config
    from covgate.model.events import DomainEvent
    from covgate.usecases.ports import (
        AnnotationScanner,
        Autodetector,
        Clock,
        ConfigLoader,
        DiffProvider,
        DomainResolver,
        HistoryStore,
        ProfileSource,
    )

NO_DIFF_FILES_WARNING = "no files matched diff-based coverage check"


def apply_overrides(cfg: Config, *, diff_ref: str | None = None, merge: Sequence[str] = ()) -> Config:
    """Enable diff mode against ``diff_ref`` and append ``merge`` profiles."""
    if diff_ref:
        cfg = replace(cfg, diff=replace(cfg.diff, enabled=True, base=diff_ref))
    if merge:
        extra = tuple(p for p in merge if p not in cfg.merge.profiles)
        cfg = replace(cfg, merge=replace(cfg.merge, profiles=cfg.merge.profiles + extra))
    return cfg


@dataclass(frozen=True, slots=True)
class CheckOptions:
    config_path: Path | None = None
    profile: str | Path | None = None
    domains: tuple[str, ...] = ()
    history: HistoryStore | None = None
    diff_ref: str | None = None
    merge: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CheckOutcome:
    result: EvaluationResult
    events: list[DomainEvent] = field(default_factory=list)


@dataclass(slots=True)
class CheckService:
    config_loader: ConfigLoader
    autodetector: Autodetector
    resolver: DomainResolver
    profiles: ProfileSource
    diff: DiffProvider | None = None
    annotations: AnnotationScanner | None = None
    clock: Clock = utcnow
    base_dir: Path = field(default_factory=Path.cwd)

    def _changed_files(self, cfg: Config) -> set[str] | None:
        if not cfg.diff.enabled or self.diff is None:
            return None
        return {to_key(f) for f in self.diff.changed_files(cfg.diff.base)}

    def check(self, options: CheckOptions) -> CheckOutcome:
        cfg = load_or_detect(self.config_loader, self.autodetector, options.config_path)
        cfg = apply_overrides(cfg, diff_ref=options.diff_ref, merge=options.merge)
        policy = select_domains(cfg.policy, options.domains)

        paths = profile_paths(cfg, options.profile, base=self.base_dir)
        normalizer, coverage = load_file_coverage(self.profiles, self.resolver, cfg, paths)
        annotations = scan_annotations(self.annotations, cfg, normalizer.module_root, coverage)

        changed = self._changed_files(cfg)
        filtered = filter_coverage(coverage, changed)
        if cfg.diff.enabled and not filtered:
            logger.warning(NO_DIFF_FILES_WARNING)
            return CheckOutcome(result=EvaluationResult(passed=True, warnings=(NO_DIFF_FILES_WARNING,)))

        domain_dirs = self.resolver.resolve(policy.domains)
        domain_coverage = aggregate_domains(normalizer, filtered, domain_dirs, cfg, policy.domains, annotations)

        if cfg.diff.enabled:
            policy = drop_empty_domains(policy, domain_coverage)

        result, events = evaluate(policy, domain_coverage, clock=self.clock)
        files, files_passed = evaluate_file_rules(
            filtered,
            cfg.files,
            exclude=cfg.exclude,
            annotations=annotations,
        )
        result = replace(
            result,
            files=files,
            passed=result.passed and files_passed,
            warnings=tuple(overlap_warnings(domain_dirs)),
        )

        if options.history is not None:
            try:
                result = with_deltas(result, options.history.load())
            except HistoryError as exc:
                logger.warning("skipping history deltas: %s", exc)

        logger.info(
            "check %s: %d domain(s), %d failing",
            "passed" if result.passed else "failed",
            len(result.domains),
            result.failing_count,
        )
        return CheckOutcome(result=result, events=events)


__all__ = ["NO_DIFF_FILES_WARNING", "CheckOptions", "CheckOutcome", "CheckService", "apply_overrides"]

"""The ``record`` and ``trend`` use cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.errors import HistoryError
from covgate.model.events import utcnow
from covgate.model.history import build_entry
from covgate.model.trend import DEFAULT_LOOKBACK, analyze_history, analyze_trend, predict_next
from covgate.usecases.config import load_or_detect
from covgate.usecases.pipeline import prepare_coverage, profile_paths

if TYPE_CHECKING:
    from covgate.model.events import DomainEvent
    from covgate.model.history import HistoryEntry
    from covgate.model.trend import HistoryStats, Prediction, TrendAnalysis
    from covgate.usecases.ports import (
        AnnotationScanner,
        Autodetector,
        Clock,
        ConfigLoader,
        DomainResolver,
        HistoryStore,
        ProfileSource,
    )


@dataclass(frozen=True, slots=True)
class RecordOptions:
    config_path: Path | None = None
    profile: str | Path | None = None
    commit: str = ""
    branch: str = ""


@dataclass(frozen=True, slots=True)
class TrendOptions:
    config_path: Path | None = None
    profile: str | Path | None = None
    days: int = 0  # 0 = all entries
    lookback: int = DEFAULT_LOOKBACK


@dataclass(frozen=True, slots=True)
class TrendReport:
    current: HistoryEntry
    previous: HistoryEntry
    analysis: TrendAnalysis
    stats: HistoryStats
    prediction: Prediction
    entries: tuple[HistoryEntry, ...] = ()
    events: list[DomainEvent] = field(default_factory=list)
    warnings: tuple[str, ...] = ()


@dataclass(slots=True)
class HistoryService:
    config_loader: ConfigLoader
    autodetector: Autodetector
    resolver: DomainResolver
    profiles: ProfileSource
    annotations: AnnotationScanner | None = None
    clock: Clock = utcnow
    base_dir: Path = field(default_factory=Path.cwd)

    def snapshot(
        self,
        config_path: Path | None,
        profile: str | Path | None,
        *,
        commit: str = "",
        branch: str = "",
    ) -> tuple[HistoryEntry, list[str]]:
        """Build (but do not store) a history entry for the current profile."""
        cfg = load_or_detect(self.config_loader, self.autodetector, config_path)
        ctx = prepare_coverage(
            cfg=cfg,
            policy=cfg.policy,
            paths=profile_paths(cfg, profile, base=self.base_dir),
            profiles=self.profiles,
            resolver=self.resolver,
            scanner=self.annotations,
        )
        return build_entry(cfg.policy, ctx.domain_coverage, clock=self.clock, commit=commit, branch=branch)

    def record(self, options: RecordOptions, store: HistoryStore) -> tuple[HistoryEntry, list[str]]:
        entry, warnings = self.snapshot(
            options.config_path,
            options.profile,
            commit=options.commit,
            branch=options.branch,
        )
        for warning in warnings:
            logger.warning(warning)
        store.append(entry)
        logger.info("recorded %.1f%% overall coverage (%d domains)", entry.overall, len(entry.domains))
        return entry, warnings

    def trend(self, options: TrendOptions, store: HistoryStore) -> TrendReport:
        """Compare the current profile with the latest recorded entry.

        Raises ``HistoryError`` when nothing has been recorded yet.
        """
        history = store.load()
        previous = history.latest
        if previous is None:
            msg = "no history data available; run 'covgate record' after coverage runs"
            raise HistoryError(msg)

        current, warnings = self.snapshot(options.config_path, options.profile)
        analysis, events = analyze_trend(previous, current, clock=self.clock)

        entries = history.entries
        if options.days > 0:
            entries = history.entries_after(self.clock() - timedelta(days=options.days))

        return TrendReport(
            current=current,
            previous=previous,
            analysis=analysis,
            stats=analyze_history(entries),
            prediction=predict_next(entries, options.lookback),
            entries=entries,
            events=events,
            warnings=tuple(warnings),
        )


__all__ = ["HistoryService", "RecordOptions", "TrendOptions", "TrendReport"]

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from covgate.model.metrics import pct
from covgate.model.types import MergePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


@dataclass(frozen=True, slots=True)
class CoverageStat:
    """Covered vs total statements for one file (or one aggregated domain)."""

    covered: int = 0
    total: int = 0

    def __post_init__(self) -> None:
        """Validate that ``0 <= covered <= total``."""
        if self.covered < 0 or self.total < 0:
            msg = "CoverageStat.covered/total must be >= 0"
            raise ValueError(msg)
        if self.covered > self.total:
            msg = f"CoverageStat.covered ({self.covered}) exceeds total ({self.total})"
            raise ValueError(msg)

    @property
    def percent(self) -> float:
        return pct(self.covered, self.total)

    @property
    def uncovered(self) -> int:
        return self.total - self.covered

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def __add__(self, other: CoverageStat) -> CoverageStat:
        return CoverageStat(covered=self.covered + other.covered, total=self.total + other.total)

    def merge_max(self, other: CoverageStat) -> CoverageStat:
        return CoverageStat(covered=max(self.covered, other.covered), total=max(self.total, other.total))


EMPTY = CoverageStat()


def merge_maps(
    maps: Iterable[Mapping[str, CoverageStat]],
    *,
    policy: MergePolicy = MergePolicy.SUM,
) -> dict[str, CoverageStat]:
    """Merge several per-file coverage maps into one.

    ``MergePolicy.SUM`` adds covered/total (disjoint suites);
    ``MergePolicy.MAX`` keeps the component-wise maximum (overlapping runs).
    """
    merged: dict[str, CoverageStat] = {}
    for stats in maps:
        for file, stat in stats.items():
            existing = merged.get(file)
            if existing is None:
                merged[file] = stat
            elif policy is MergePolicy.MAX:
                merged[file] = existing.merge_max(stat)
            else:
                merged[file] = existing + stat
    return merged


def total_of(stats: Iterable[CoverageStat]) -> CoverageStat:
    out = EMPTY
    for stat in stats:
        out += stat
    return out


__all__ = ["EMPTY", "CoverageStat", "merge_maps", "total_of"]

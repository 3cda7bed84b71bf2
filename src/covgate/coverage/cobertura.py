"""Parser for Cobertura XML (``coverage/packages/package/classes/class``)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.coverage.xml_reader import read_root
from covgate.model.coverage import CoverageStat
from covgate.model.types import Format

if TYPE_CHECKING:
    from collections.abc import Iterator

    from covgate.coverage.types import ElementLike

ROOT_TAGS = frozenset({"coverage"})


def _iter_line_hits(cls: ElementLike) -> Iterator[tuple[int, int]]:
    """Yield ``(number, hits)`` for class-level and method-level lines."""
    elems = [*cls.findall("./lines/line"), *cls.findall("./methods/method/lines/line")]
    for line_elem in elems:
        n_raw = line_elem.get("number")
        hits_raw = line_elem.get("hits")
        if not n_raw or hits_raw is None:
            continue
        try:
            yield int(n_raw), int(hits_raw)
        except ValueError:
            logger.debug("skipping malformed cobertura line number=%r hits=%r", n_raw, hits_raw)


def class_stat(cls: ElementLike) -> CoverageStat:
    """Statement counts for one ``<class>``; a line is hit if any occurrence is hit."""
    line_hits: dict[int, bool] = {}
    for number, hits in _iter_line_hits(cls):
        line_hits[number] = line_hits.get(number, False) or hits > 0
    covered = sum(1 for hit in line_hits.values() if hit)
    return CoverageStat(covered=covered, total=len(line_hits))


def stats_from_root(root: ElementLike) -> dict[str, CoverageStat]:
    stats: dict[str, CoverageStat] = {}
    for cls in root.findall(".//class"):
        filename = cls.get("filename")
        if not filename:
            continue
        stats[filename] = stats.get(filename, CoverageStat()) + class_stat(cls)
    return stats


class CoberturaParser:
    format = Format.COBERTURA

    def parse(self, path: Path) -> dict[str, CoverageStat]:
        return stats_from_root(read_root(Path(path), expected=ROOT_TAGS))


__all__ = ["ROOT_TAGS", "CoberturaParser", "class_stat", "stats_from_root"]

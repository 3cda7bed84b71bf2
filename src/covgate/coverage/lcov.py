"""Parser for LCOV tracefiles (``SF:``/``DA:``/``end_of_record``)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from covgate._meta import logger
from covgate.coverage.source import read_text
from covgate.model.coverage import CoverageStat
from covgate.model.types import Format


@dataclass(slots=True)
class _Record:
    file: str
    covered: int = 0
    total: int = 0

    def stat(self) -> CoverageStat:
        # LH may exceed the DA-derived total in hand-edited files.
        total = max(self.total, self.covered)
        return CoverageStat(covered=self.covered, total=total)


def _int_field(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_text(text: str, *, source: str = "<string>") -> dict[str, CoverageStat]:
    stats: dict[str, CoverageStat] = {}
    record: _Record | None = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if line.startswith("SF:"):
            record = _Record(file=line[3:])
        elif line == "end_of_record":
            if record is not None and record.file:
                stats[record.file] = record.stat()
            record = None
        elif record is None:
            continue
        elif line.startswith("DA:"):
            parts = line[3:].split(",")
            hits = _int_field(parts[1]) if len(parts) >= 2 else None  # noqa: PLR2004
            if hits is None:
                logger.debug("%s:%d: skipping malformed DA line", source, lineno)
                continue
            record.total += 1
            if hits > 0:
                record.covered += 1
        elif line.startswith("LF:"):
            lf = _int_field(line[3:])
            if lf is not None and lf > record.total:
                record.total = lf
        elif line.startswith("LH:"):
            lh = _int_field(line[3:])
            if lh is not None and lh > record.covered:
                record.covered = lh
        # TN:, FN*, BR* and unknown records carry no line counts.

    if record is not None and record.file:
        stats[record.file] = record.stat()
    return stats


class LcovParser:
    format = Format.LCOV

    def parse(self, path: Path) -> dict[str, CoverageStat]:
        path = Path(path)
        return parse_text(read_text(path), source=str(path))


__all__ = ["LcovParser", "parse_text"]

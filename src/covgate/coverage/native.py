"""Parser for the native ``mode:`` text profile.

Layout::

    mode: set
    example.com/mod/pkg/file.go:10.2,12.16 2 1

Each data line is ``file:startLine.startCol,endLine.endCol numStatements hitCount``.
"""

from __future__ import annotations

from pathlib import Path

from covgate._meta import logger
from covgate.coverage.source import read_text
from covgate.errors import ParseError
from covgate.model.coverage import CoverageStat
from covgate.model.types import Format

_FIELDS = 3


def _parse_line(line: str) -> tuple[str, int, int] | None:
    """Return ``(file, covered, total)`` for one block, or ``None`` when malformed."""
    parts = line.split()
    if len(parts) < _FIELDS:
        return None
    location, stmts_raw, hits_raw = parts[0], parts[1], parts[2]
    file, sep, _span = location.rpartition(":")
    if not sep or not file:
        return None
    try:
        stmts = int(stmts_raw)
        hits = int(hits_raw)
    except ValueError:
        return None
    if stmts < 0:
        return None
    return file, (stmts if hits > 0 else 0), stmts


def parse_text(text: str, *, source: str = "<string>") -> dict[str, CoverageStat]:
    stats: dict[str, CoverageStat] = {}
    seen_header = False
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if not seen_header:
            if not line.startswith("mode:"):
                msg = f"{source}: invalid coverage profile, expected 'mode:' header on line {lineno}"
                raise ParseError(msg)
            seen_header = True
            continue
        parsed = _parse_line(line)
        if parsed is None:
            logger.debug("%s:%d: skipping malformed profile line", source, lineno)
            continue
        file, covered, total = parsed
        stats[file] = stats.get(file, CoverageStat()) + CoverageStat(covered=covered, total=total)
    return stats


class NativeParser:
    format = Format.NATIVE

    def parse(self, path: Path) -> dict[str, CoverageStat]:
        path = Path(path)
        return parse_text(read_text(path), source=str(path))


__all__ = ["NativeParser", "parse_text"]

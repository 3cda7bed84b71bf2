"""Source pragmas that override domain assignment.

Only the first ``MAX_SCAN_LINES`` lines of a file are read::

    # covgate:ignore
    // covgate:domain=core
"""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import TYPE_CHECKING

from covgate.errors import ResolutionError
from covgate.model.policy import Annotation

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

MAX_SCAN_LINES = 20
PRAGMA_IGNORE = "covgate:ignore"
PRAGMA_DOMAIN = "covgate:domain="

SOURCE_SUFFIXES = frozenset(
    {".go", ".py", ".pyi", ".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".java", ".kt", ".rs"}
)


def parse_pragmas(lines: Iterable[str]) -> Annotation | None:
    ignore = False
    domain: str | None = None
    for line in lines:
        if PRAGMA_IGNORE in line:
            ignore = True
        _, found, rest = line.partition(PRAGMA_DOMAIN)
        if found:
            fields = rest.split()
            if fields:
                domain = fields[0]
    if not ignore and domain is None:
        return None
    return Annotation(ignore=ignore, domain=domain)


class PragmaScanner:
    """``AnnotationScanner`` reading pragmas from tracked source files."""

    def __init__(self, suffixes: frozenset[str] = SOURCE_SUFFIXES, max_lines: int = MAX_SCAN_LINES) -> None:
        self.suffixes = suffixes
        self.max_lines = max_lines

    def scan_file(self, path: Path) -> Annotation | None:
        try:
            with path.open(encoding="utf-8", errors="replace") as fh:
                return parse_pragmas(itertools.islice(fh, self.max_lines))
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"failed to scan {path} for annotations: {exc}"
            raise ResolutionError(msg) from exc

    def scan(self, module_root: str, files: Sequence[str]) -> dict[str, Annotation]:
        root = Path(module_root) if module_root else None
        out: dict[str, Annotation] = {}
        for file in files:
            if Path(file).suffix not in self.suffixes:
                continue
            path = root / file if root is not None else Path(file)
            ann = self.scan_file(path)
            if ann is not None:
                out[file] = ann
        return out


__all__ = ["MAX_SCAN_LINES", "PRAGMA_DOMAIN", "PRAGMA_IGNORE", "PragmaScanner", "parse_pragmas"]

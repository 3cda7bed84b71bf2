"""Format dispatch and multi-profile merging."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.coverage.cobertura import CoberturaParser
from covgate.coverage.detect import detect_format
from covgate.coverage.jacoco import JacocoParser
from covgate.coverage.lcov import LcovParser
from covgate.coverage.native import NativeParser
from covgate.errors import ParseError
from covgate.model.coverage import CoverageStat, merge_maps
from covgate.model.types import Format, MergePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from covgate.coverage.types import ProfileParser

# Line-based LCOV runs overlap on the same lines; block/class-based formats are disjoint.
MERGE_POLICIES: Mapping[Format, MergePolicy] = {
    Format.NATIVE: MergePolicy.SUM,
    Format.LCOV: MergePolicy.MAX,
    Format.COBERTURA: MergePolicy.SUM,
    Format.JACOCO: MergePolicy.SUM,
}


def default_parsers() -> dict[Format, ProfileParser]:
    return {
        Format.NATIVE: NativeParser(),
        Format.LCOV: LcovParser(),
        Format.COBERTURA: CoberturaParser(),
        Format.JACOCO: JacocoParser(),
    }


class ParserRegistry:
    """Detects each profile's format and dispatches to the matching parser."""

    def __init__(self, parsers: Mapping[Format, ProfileParser] | None = None) -> None:
        self._parsers = dict(parsers) if parsers is not None else default_parsers()

    def supported_formats(self) -> tuple[Format, ...]:
        return tuple(self._parsers)

    def parser_for(self, fmt: Format) -> ProfileParser:
        if fmt is Format.AUTO:
            fmt = Format.NATIVE
        try:
            return self._parsers[fmt]
        except KeyError:
            msg = f"no parser available for format: {fmt.value}"
            raise ParseError(msg) from None

    def resolve_format(self, path: Path, fmt: Format = Format.AUTO) -> Format:
        if fmt is Format.AUTO:
            fmt = detect_format(path)
        return Format.NATIVE if fmt is Format.AUTO else fmt

    def parse(self, path: Path, fmt: Format = Format.AUTO) -> dict[str, CoverageStat]:
        path = Path(path)
        resolved = self.resolve_format(path, fmt)
        logger.info("parsing %s as %s", path, resolved.value)
        return self.parser_for(resolved).parse(path)

    def parse_all(self, paths: Iterable[Path], fmt: Format = Format.AUTO) -> dict[str, CoverageStat]:
        """Parse and merge several profiles.

        Profiles of one format merge with that format's policy (``MERGE_POLICIES``);
        the per-format results are then summed.
        """
        by_format: dict[Format, list[dict[str, CoverageStat]]] = {}
        for raw in paths:
            path = Path(raw)
            resolved = self.resolve_format(path, fmt)
            by_format.setdefault(resolved, []).append(self.parser_for(resolved).parse(path))

        per_format = [
            merge_maps(maps, policy=MERGE_POLICIES.get(resolved, MergePolicy.SUM))
            for resolved, maps in by_format.items()
        ]
        return merge_maps(per_format, policy=MergePolicy.SUM)


__all__ = ["MERGE_POLICIES", "ParserRegistry", "default_parsers"]

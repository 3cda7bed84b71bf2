"""Parser for JaCoCo XML reports.

Layout::

    <report name="app">
      <group name="module">            (optional, may nest)
        <package name="com/example">
          <sourcefile name="Foo.java">
            <line nr="3" mi="0" ci="4" mb="0" cb="0"/>

A ``<line>`` counts toward the total and toward covered when ``ci > 0``.
Reports whose root is ``<coverage>`` are Cobertura-shaped and are handed to
the Cobertura grammar.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.coverage.cobertura import stats_from_root as cobertura_stats
from covgate.coverage.types import local_tag
from covgate.coverage.xml_reader import read_root
from covgate.model.coverage import CoverageStat
from covgate.model.types import Format

if TYPE_CHECKING:
    from covgate.coverage.types import ElementLike

ROOT_TAGS = frozenset({"report", "coverage"})


def _source_key(package: str, sourcefile: str) -> str:
    package = package.strip("/")
    return f"{package}/{sourcefile}" if package else sourcefile


def _sourcefile_stat(elem: ElementLike) -> CoverageStat:
    covered = total = 0
    for line_elem in elem.findall("./line"):
        ci_raw = line_elem.get("ci", "0") or "0"
        try:
            ci = int(ci_raw)
        except ValueError:
            logger.debug("skipping malformed jacoco line nr=%r ci=%r", line_elem.get("nr"), ci_raw)
            continue
        total += 1
        if ci > 0:
            covered += 1
    return CoverageStat(covered=covered, total=total)


def stats_from_root(root: ElementLike) -> dict[str, CoverageStat]:
    stats: dict[str, CoverageStat] = {}
    # .//package reaches packages nested inside any depth of <group>.
    for package in root.findall(".//package"):
        name = package.get("name", "") or ""
        for sourcefile in package.findall("./sourcefile"):
            filename = sourcefile.get("name")
            if not filename:
                continue
            key = _source_key(name, filename)
            stats[key] = stats.get(key, CoverageStat()) + _sourcefile_stat(sourcefile)
    return stats


class JacocoParser:
    format = Format.JACOCO

    def parse(self, path: Path) -> dict[str, CoverageStat]:
        root = read_root(Path(path), expected=ROOT_TAGS)
        if local_tag(root) == "coverage":
            logger.debug("%s has a <coverage> root; parsing as cobertura", path)
            return cobertura_stats(root)
        return stats_from_root(root)


__all__ = ["JacocoParser", "stats_from_root"]

"""Per-domain aggregation of per-file coverage.

For each file, in order:

1. drop it when its module-relative path matches a global exclude;
2. honour an annotation: ``ignore`` drops it, a ``domain`` override sends it
   to that domain only;
3. add it to every domain whose directories contain it (a file may belong to
   several domains);
4. except domains whose own exclude patterns match it.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covgate.engine.normalize import PathNormalizer
from covgate.model.coverage import CoverageStat
from covgate.model.path_filter import matches_any, to_key

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from covgate.model.policy import Annotation


@dataclass(frozen=True, slots=True)
class AggregationInput:
    file_coverage: Mapping[str, CoverageStat]
    domain_dirs: Mapping[str, Sequence[str]]
    global_excludes: Sequence[str] = ()
    domain_excludes: Mapping[str, Sequence[str]] = field(default_factory=dict)
    annotations: Mapping[str, Annotation] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Classification:
    """Why a file did (or did not) count toward a domain."""

    file: str
    domain: str | None = None
    excluded: bool = False
    annotated: bool = False
    reason: str = ""


def _clean(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


def _under(file: str, directory: str) -> bool:
    return file == directory or file.startswith(directory.rstrip("/") + "/")


def is_globally_excluded(rel_path: str, patterns: Sequence[str]) -> bool:
    return bool(patterns) and matches_any(rel_path, patterns)


def is_domain_excluded(rel_path: str, domain: str, domain_excludes: Mapping[str, Sequence[str]]) -> bool:
    patterns = domain_excludes.get(domain, ())
    return bool(patterns) and matches_any(rel_path, patterns)


def matches_any_dir(normalized: str, dirs: Sequence[str], module_root: str = "") -> bool:
    """True when ``normalized`` lies in (or is) one of ``dirs``.

    Each directory is compared as given and, when ``module_root`` is set, in
    its module-relative form against the file's module-relative form. A
    directory equal to the module root matches every file.
    """
    file = _clean(normalized)
    normalizer = PathNormalizer(module_root) if module_root else None
    rel_file = normalizer.relative(file) if normalizer else file
    for raw in dirs:
        directory = _clean(raw)
        if _under(file, directory):
            return True
        if normalizer is None:
            continue
        rel_dir = normalizer.relative(directory) if posixpath.isabs(directory) else to_key(directory)
        if rel_dir == "":
            return True
        if not posixpath.isabs(rel_dir) and _under(rel_file, rel_dir):
            return True
    return False


def _walk(data: AggregationInput, normalizer: PathNormalizer) -> Iterator[tuple[str, CoverageStat, Classification]]:
    for file, stat in data.file_coverage.items():
        normalized = normalizer.normalize(file)
        rel = to_key(normalizer.relative(normalized))

        if is_globally_excluded(rel, data.global_excludes):
            yield file, stat, Classification(file=file, excluded=True, reason="matches global exclude pattern")
            continue

        ann = data.annotations.get(rel)
        if ann is not None and ann.ignore:
            yield file, stat, Classification(file=file, excluded=True, annotated=True, reason="ignored by annotation")
            continue
        if ann is not None and ann.domain:
            yield file, stat, Classification(file=file, domain=ann.domain, annotated=True, reason="assigned by annotation")
            continue

        matched = False
        for name, dirs in data.domain_dirs.items():
            if not matches_any_dir(normalized, dirs, normalizer.module_root):
                continue
            matched = True
            if is_domain_excluded(rel, name, data.domain_excludes):
                yield file, stat, Classification(
                    file=file, domain=name, excluded=True, reason="matches domain-specific exclude pattern"
                )
                continue
            yield file, stat, Classification(file=file, domain=name, reason="matches domain directory")

        if not matched:
            yield file, stat, Classification(file=file, reason="no domain match")


def aggregate(data: AggregationInput, normalizer: PathNormalizer | None = None) -> dict[str, CoverageStat]:
    """Sum file coverage into per-domain totals."""
    normalizer = normalizer or PathNormalizer()
    result: dict[str, CoverageStat] = {}
    for _file, stat, cls in _walk(data, normalizer):
        if cls.domain is None or cls.excluded:
            continue
        result[cls.domain] = result.get(cls.domain, CoverageStat()) + stat
    return result


def classify(data: AggregationInput, normalizer: PathNormalizer | None = None) -> list[Classification]:
    """One ``Classification`` per file/domain decision, in input order."""
    normalizer = normalizer or PathNormalizer()
    return [cls for _file, _stat, cls in _walk(data, normalizer)]


def overlap_warnings(domain_dirs: Mapping[str, Sequence[str]]) -> list[str]:
    """Warn once per directory configured for more than one domain."""
    owners: dict[str, set[str]] = {}
    for name, dirs in domain_dirs.items():
        for directory in dirs:
            owners.setdefault(_clean(directory), set()).add(name)
    warnings = [
        f"directory {directory} belongs to {', '.join(sorted(names))} domains"
        for directory, names in owners.items()
        if len(names) > 1
    ]
    return sorted(warnings)


__all__ = [
    "AggregationInput",
    "Classification",
    "aggregate",
    "classify",
    "is_domain_excluded",
    "is_globally_excluded",
    "matches_any_dir",
    "overlap_warnings",
]

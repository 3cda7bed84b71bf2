"""Mapping raw profile file keys onto the module's directory tree."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

from covgate.model.coverage import CoverageStat
from covgate.model.path_filter import to_key

if TYPE_CHECKING:
    from collections.abc import Mapping


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path.replace("\\", "/"))
    return "" if cleaned == "." else cleaned


class PathNormalizer:
    """Resolve parser file keys against ``module_root``.

    ``module_path`` is the import-path prefix profiles use for files of this
    module (for example ``example.com/mod``); it may be empty.
    """

    def __init__(self, module_root: Path | str = "", module_path: str = "") -> None:
        root = str(module_root) if module_root else ""
        self.module_root = _clean(Path(root).as_posix()) if root else ""
        self.module_path = module_path.strip().rstrip("/")

    def _join(self, rel: str) -> str:
        if not self.module_root:
            return _clean(rel)
        return _clean(posixpath.join(self.module_root, rel))

    def normalize(self, raw: str) -> str:
        clean = _clean(raw)
        if posixpath.isabs(clean):
            return clean
        if self.module_path:
            if raw == self.module_path:
                return self.module_root or clean
            prefix = self.module_path + "/"
            if raw.startswith(prefix):
                return self._join(raw[len(prefix):])
        return self._join(clean)

    def relative(self, normalized: str) -> str:
        """Module-relative, slash-separated form; the cleaned input when outside the root."""
        clean = _clean(normalized)
        root = self.module_root
        if not root:
            return clean
        if clean == root:
            return ""
        prefix = root if root.endswith("/") else root + "/"
        if clean.startswith(prefix):
            return clean[len(prefix):]
        return clean

    def key(self, raw: str) -> str:
        return self.relative(self.normalize(raw))


def normalize_coverage_map(
    coverage: Mapping[str, CoverageStat],
    normalizer: PathNormalizer,
) -> dict[str, CoverageStat]:
    """Re-key ``coverage`` by module-relative path; keys that collapse are summed."""
    out: dict[str, CoverageStat] = {}
    for raw, stat in coverage.items():
        key = to_key(normalizer.key(raw))
        out[key] = out.get(key, CoverageStat()) + stat
    return out


__all__ = ["PathNormalizer", "normalize_coverage_map"]

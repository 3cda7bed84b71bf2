"""Resolve domain ``match`` patterns to existing directories."""

from __future__ import annotations

import glob
import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.adapters.language import go_module_path
from covgate.errors import ResolutionError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from covgate.model.policy import DomainSpec


def normalize_pattern(pattern: str, base_dir: Path) -> str:
    """Turn ``./dir/...`` (Go style) into ``dir/**`` and anchor relative patterns at ``base_dir``."""
    pattern = pattern.strip().removeprefix("./")
    if pattern == "...":
        pattern = "**"
    elif pattern.endswith("/..."):
        pattern = pattern.removesuffix("/...") + "/**"
    if not os.path.isabs(pattern):
        pattern = os.path.join(base_dir, pattern) if pattern else str(base_dir)
    return pattern


def _walk_dirs(base: Path) -> Iterator[Path]:
    """``base`` and every non-hidden directory below it."""
    yield base
    for dirpath, dirnames, _files in os.walk(base):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in dirnames:
            yield Path(dirpath) / name


class GlobResolver:
    """``DomainResolver`` over the file system rooted at ``project_dir``."""

    def __init__(self, project_dir: Path | None = None, module_path: str = "") -> None:
        self.project_dir = (project_dir or Path.cwd()).resolve()
        self._module_path = module_path

    def module_root(self) -> str:
        if not self.project_dir.is_dir():
            msg = f"module root is not a directory: {self.project_dir}"
            raise ResolutionError(msg)
        return self.project_dir.as_posix()

    def module_path(self) -> str:
        return self._module_path or go_module_path(self.project_dir)

    def _recursive(self, pattern: str) -> list[Path]:
        head, _, tail = pattern.partition("**")
        base = Path(head.rstrip("/\\") or self.project_dir)
        if not base.is_dir():
            return []
        suffix = tail.strip("/\\")
        if not suffix:
            # Prefix matching already covers every directory below base.
            return [base]
        leaf = Path(suffix).name
        return [d for d in _walk_dirs(base) if leaf == "*" or fnmatchcase(d.name, leaf)]

    def glob_dirs(self, pattern: str) -> list[Path]:
        if "**" in pattern:
            return self._recursive(pattern)
        return sorted(Path(m) for m in glob.glob(pattern) if os.path.isdir(m))

    def resolve(self, domains: Sequence[DomainSpec]) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for spec in domains:
            dirs: list[str] = []
            for raw in spec.match:
                for found in self.glob_dirs(normalize_pattern(raw, self.project_dir)):
                    key = found.as_posix()
                    if key not in dirs:
                        dirs.append(key)
            if not dirs:
                logger.warning("domain %r matched no directories (%s)", spec.name, ", ".join(spec.match))
            result[spec.name] = dirs
        return result


__all__ = ["GlobResolver", "normalize_pattern"]

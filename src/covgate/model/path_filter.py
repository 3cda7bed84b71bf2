from __future__ import annotations

import posixpath
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def to_key(path: str) -> str:
    """Return the canonical slash-separated, cleaned form of a relative path."""
    cleaned = posixpath.normpath(path.replace("\\", "/"))
    return "" if cleaned == "." else cleaned


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """True if the slash-separated ``path`` matches any shell-style glob."""
    key = to_key(path)
    return any(fnmatchcase(key, pattern) for pattern in patterns)


__all__ = ["matches_any", "to_key"]

"""Coverage profile format detection.

Content is sniffed first (the first 4 KB); the file name is only a fallback
hint. A ``.xml`` extension alone is ambiguous and stays unresolved.
"""

from __future__ import annotations

from pathlib import Path

from covgate._meta import logger
from covgate.coverage.source import HEAD_BYTES, read_head
from covgate.model.types import Format

_NATIVE_NAMES = frozenset({"coverage.out", "cover.out"})
_LCOV_NAMES = frozenset({"lcov.info", "coverage.info"})


def _is_xml(content: bytes) -> bool:
    trimmed = content.strip()
    return trimmed.startswith((b"<?xml", b"<"))


def _has_cobertura_markers(content: bytes) -> bool:
    return b"<coverage" in content or b"cobertura" in content


def _has_jacoco_markers(content: bytes) -> bool:
    lowered = content.lower()
    return b"<report" in lowered and (b"jacoco" in lowered or b"<sourcefile" in lowered)


def _is_lcov(content: bytes) -> bool:
    has_sf = has_da = False
    for raw in content.splitlines():
        line = raw.strip()
        has_sf = has_sf or line.startswith(b"SF:")
        has_da = has_da or line.startswith(b"DA:")
        if has_sf and has_da:
            return True
    return False


def detect_from_content(content: bytes) -> Format:
    """Return the format implied by ``content`` or ``Format.AUTO`` when no marker is found."""
    if content.startswith(b"mode:"):
        return Format.NATIVE
    if _is_xml(content) and _has_cobertura_markers(content):
        return Format.COBERTURA
    if _is_lcov(content):
        return Format.LCOV
    if _is_xml(content) and _has_jacoco_markers(content):
        return Format.JACOCO
    return Format.AUTO


def detect_from_name(path: str | Path) -> Format:
    p = Path(path)
    ext = p.suffix.lower()
    base = p.name.lower()
    if ext == ".out" or base in _NATIVE_NAMES:
        return Format.NATIVE
    if ext == ".info" or base in _LCOV_NAMES:
        return Format.LCOV
    # .xml may be Cobertura or JaCoCo; only content can tell.
    return Format.AUTO


def detect_format(path: str | Path) -> Format:
    """Detect the format of the profile at ``path``.

    Raises ``ProfileNotFoundError``/``ParseError`` when the file cannot be read.
    """
    p = Path(path)
    content = read_head(p, HEAD_BYTES)
    fmt = detect_from_content(content)
    if fmt is Format.AUTO:
        fmt = detect_from_name(p)
    logger.debug("detected %s format for %s", fmt.value, p)
    return fmt


__all__ = ["detect_format", "detect_from_content", "detect_from_name"]

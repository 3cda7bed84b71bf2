"""Reading profile bytes from disk with covgate's error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covgate.errors import ParseError, ProfileNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

HEAD_BYTES = 4096


def read_head(path: Path, size: int = HEAD_BYTES) -> bytes:
    """Return at most ``size`` bytes from the start of ``path`` (empty files are fine)."""
    try:
        with path.open("rb") as fh:
            return fh.read(size)
    except FileNotFoundError as exc:
        msg = f"coverage profile not found: {path}"
        raise ProfileNotFoundError(msg) from exc
    except OSError as exc:
        msg = f"failed to read coverage profile {path}: {exc}"
        raise ParseError(msg) from exc


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"coverage profile not found: {path}"
        raise ProfileNotFoundError(msg) from exc
    except UnicodeDecodeError as exc:
        msg = f"coverage profile is not valid UTF-8 text: {path}"
        raise ParseError(msg) from exc
    except OSError as exc:
        msg = f"failed to read coverage profile {path}: {exc}"
        raise ParseError(msg) from exc


__all__ = ["HEAD_BYTES", "read_head", "read_text"]

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from covgate.errors import ProfileNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence


def resolve_profile_paths(paths: Sequence[Path | str], *, base: Path | None = None) -> tuple[Path, ...]:
    """Resolve coverage profile inputs.

    Rules
    -----
    - Relative paths are taken relative to ``base`` (default: the working directory).
    - Every path must exist.
    - Duplicates are dropped, first occurrence wins.
    """
    root = base or Path.cwd()
    given = [Path(p) if Path(p).is_absolute() else root / p for p in paths]
    if not given:
        msg = "no coverage profile provided"
        raise ProfileNotFoundError(msg)
    missing = [p for p in given if not p.exists()]
    if missing:
        msg = f"coverage profile not found: {', '.join(str(p) for p in missing)}"
        raise ProfileNotFoundError(msg)
    return tuple(dict.fromkeys(p.resolve() for p in given))


__all__ = ["resolve_profile_paths"]

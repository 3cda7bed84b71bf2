"""Changed files from git, for diff-mode checks."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.errors import ResolutionError
from covgate.model.config import DEFAULT_DIFF_BASE
from covgate.model.path_filter import to_key

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    GitRunner = Callable[[Sequence[str], Path], str]


def run_git(args: Sequence[str], cwd: Path) -> str:
    try:
        proc = subprocess.run(  # noqa: S603
            ["git", *args],  # noqa: S607
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        msg = "git executable not found"
        raise ResolutionError(msg) from exc
    if proc.returncode != 0:
        msg = f"git {' '.join(args)} failed: {proc.stderr.strip() or proc.stdout.strip()}"
        raise ResolutionError(msg)
    return proc.stdout


class GitDiffProvider:
    """``DiffProvider`` listing files changed between ``base`` and ``HEAD``."""

    def __init__(self, root: Path | None = None, runner: GitRunner | None = None) -> None:
        self.root = root or Path.cwd()
        self._run = runner or run_git

    def changed_files(self, base: str) -> list[str]:
        base = base or DEFAULT_DIFF_BASE
        out = self._run(["diff", "--name-only", f"{base}...HEAD"], self.root)
        files = [to_key(line.strip()) for line in out.splitlines() if line.strip()]
        logger.debug("%d file(s) changed since %s", len(files), base)
        return files


__all__ = ["GitDiffProvider", "run_git"]

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from covgate.adapters.diff import GitDiffProvider, run_git
from covgate.errors import ResolutionError


class RecordingRunner:
    def __init__(self, output: str) -> None:
        self.output = output
        self.calls: list[tuple[list[str], Path]] = []

    def __call__(self, args: Sequence[str], cwd: Path) -> str:
        self.calls.append((list(args), cwd))
        return self.output


def test_changed_files_uses_three_dot_range(tmp_path: Path) -> None:
    runner = RecordingRunner("internal/core/a.go\n\n./internal/api/b.go\n")
    files = GitDiffProvider(tmp_path, runner=runner).changed_files("origin/dev")
    assert files == ["internal/core/a.go", "internal/api/b.go"]
    assert runner.calls == [(["diff", "--name-only", "origin/dev...HEAD"], tmp_path)]


def test_empty_base_defaults_to_origin_main(tmp_path: Path) -> None:
    runner = RecordingRunner("")
    assert GitDiffProvider(tmp_path, runner=runner).changed_files("") == []
    assert runner.calls[0][0][-1] == "origin/main...HEAD"


def test_git_failure_raises_resolution_error(tmp_path: Path) -> None:
    # tmp_path is not a repository, or git is missing entirely; both are resolution failures.
    with pytest.raises(ResolutionError):
        run_git(["rev-parse", "--verify", "refs/heads/definitely-not-a-branch"], tmp_path)

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from covgate.adapters.annotations import PragmaScanner, parse_pragmas
from covgate.errors import ResolutionError
from covgate.model.policy import Annotation


@pytest.mark.parametrize(
    ("lines", "expected"),
    [
        (["// covgate:ignore"], Annotation(ignore=True)),
        (["# covgate:domain=core"], Annotation(domain="core")),
        (["// covgate:domain=api  trailing words"], Annotation(domain="api")),
        (["# covgate:ignore", "# covgate:domain=core"], Annotation(ignore=True, domain="core")),
        (["# covgate:domain="], None),
        (["import os"], None),
    ],
)
def test_parse_pragmas(lines: list[str], expected: Annotation | None) -> None:
    assert parse_pragmas(lines) == expected


def test_scan_reads_only_tracked_source_files(make_tree: Callable[..., Path], tmp_path: Path) -> None:
    make_tree(
        {
            "pkg/gen.go": "// Code generated.\n// covgate:ignore\npackage pkg\n",
            "pkg/owned.py": "# covgate:domain=core\n",
            "pkg/plain.py": "x = 1\n",
            "pkg/notes.txt": "covgate:ignore\n",
        }
    )
    found = PragmaScanner().scan(
        str(tmp_path),
        ["pkg/gen.go", "pkg/owned.py", "pkg/plain.py", "pkg/notes.txt", "pkg/deleted.go"],
    )
    assert found == {
        "pkg/gen.go": Annotation(ignore=True),
        "pkg/owned.py": Annotation(domain="core"),
    }


def test_pragma_past_scan_window_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "late.go"
    path.write_text("\n" * 25 + "// covgate:ignore\n", encoding="utf-8")
    assert PragmaScanner().scan_file(path) is None
    assert PragmaScanner(max_lines=30).scan_file(path) == Annotation(ignore=True)


def test_unreadable_source_raises(tmp_path: Path) -> None:
    directory = tmp_path / "dir.go"
    directory.mkdir()
    with pytest.raises(ResolutionError, match="failed to scan"):
        PragmaScanner().scan_file(directory)

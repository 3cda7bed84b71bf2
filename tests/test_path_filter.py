from __future__ import annotations

import pytest

from covgate.model.path_filter import matches_any, to_key


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("internal/core/a.go", "internal/core/a.go"),
        ("./internal/core/a.go", "internal/core/a.go"),
        ("internal\\core\\a.go", "internal/core/a.go"),
        ("internal//core/../core/a.go", "internal/core/a.go"),
        (".", ""),
        ("", ""),
    ],
)
def test_to_key(raw: str, expected: str) -> None:
    assert to_key(raw) == expected


def test_matches_any_star_crosses_separators() -> None:
    assert matches_any("src/app/migrations/0001.py", ["*/migrations/*"])
    assert matches_any("./pkg/mocks/store.go", ["pkg/mocks/*"])
    assert not matches_any("pkg/store.go", ["pkg/mocks/*", "*_test.go"])


def test_matches_any_is_case_sensitive() -> None:
    assert not matches_any("SRC/app.py", ["src/*"])


def test_matches_any_without_patterns() -> None:
    assert not matches_any("a.go", [])

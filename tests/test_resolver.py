from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from covgate.adapters.resolver import GlobResolver, normalize_pattern
from covgate.errors import ResolutionError
from covgate.model.policy import DomainSpec


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        ("./internal/core/...", "/base/internal/core/**"),
        ("./...", "/base/**"),
        ("src/app/**", "/base/src/app/**"),
        ("/abs/dir", "/abs/dir"),
        ("pkg/*", "/base/pkg/*"),
    ],
)
def test_normalize_pattern(pattern: str, expected: str) -> None:
    assert normalize_pattern(pattern, Path("/base")) == expected


@pytest.fixture
def project(make_tree: Callable[..., Path], tmp_path: Path) -> Path:
    make_tree(
        {
            "internal/core/a.go": "",
            "internal/core/store/b.go": "",
            "internal/api/c.go": "",
            "internal/.hidden/d.go": "",
            "pkg/util/e.go": "",
            "pkg/model/f.go": "",
            "README.md": "",
        }
    )
    return tmp_path.resolve()


def test_recursive_pattern_resolves_to_base_directory(project: Path) -> None:
    resolver = GlobResolver(project)
    dirs = resolver.resolve([DomainSpec("core", match=("./internal/core/...",))])
    assert dirs == {"core": [(project / "internal" / "core").as_posix()]}


def test_recursive_pattern_with_leaf_walks_directories(project: Path) -> None:
    found = GlobResolver(project).glob_dirs(f"{project}/internal/**/c*")
    assert found == [project / "internal" / "core"]


def test_hidden_directories_are_skipped(project: Path) -> None:
    found = GlobResolver(project).glob_dirs(f"{project}/internal/**/*")
    assert project / "internal" / ".hidden" not in found
    assert project / "internal" / "core" / "store" in found


def test_plain_glob_keeps_only_directories(project: Path) -> None:
    dirs = GlobResolver(project).resolve([DomainSpec("pkgs", match=("pkg/*", "README.md"))])
    assert dirs["pkgs"] == [(project / "pkg" / "model").as_posix(), (project / "pkg" / "util").as_posix()]


def test_unmatched_domain_resolves_to_empty(project: Path) -> None:
    assert GlobResolver(project).resolve([DomainSpec("ghost", match=("nowhere/**",))]) == {"ghost": []}


def test_duplicate_directories_collapse(project: Path) -> None:
    dirs = GlobResolver(project).resolve(
        [DomainSpec("api", match=("internal/api/**", "./internal/api/..."))]
    )
    assert dirs == {"api": [(project / "internal" / "api").as_posix()]}


def test_module_root_and_path(project: Path, tmp_path: Path) -> None:
    resolver = GlobResolver(project, module_path="example.com/mod")
    assert resolver.module_root() == project.as_posix()
    assert resolver.module_path() == "example.com/mod"
    with pytest.raises(ResolutionError, match="not a directory"):
        GlobResolver(tmp_path / "README.md").module_root()


def test_module_path_falls_back_to_go_mod(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com/fromfile\n", encoding="utf-8")
    assert GlobResolver(tmp_path).module_path() == "example.com/fromfile"
    assert GlobResolver(tmp_path, module_path="example.com/explicit").module_path() == "example.com/explicit"

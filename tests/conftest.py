from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from click.testing import CliRunner

from covgate.model.config import Config, ProfileConfig
from covgate.model.coverage import CoverageStat
from covgate.model.history import DomainEntry, History, HistoryEntry
from covgate.model.policy import Annotation, DomainSpec, Policy
from covgate.model.types import Status

NativeBlocks = Mapping[str, Iterable[tuple[int, int]]]
LinesSpec = Mapping[int, int] | Iterable[int]

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a click CLI runner for invoking the command-line interface."""
    return CliRunner()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


# --------------------------------------------------------------------------- #
# Profile builders                                                            #
# --------------------------------------------------------------------------- #


@pytest.fixture
def native_profile(tmp_path: Path) -> Callable[..., Path]:
    """Write a ``mode: set`` profile; blocks are ``(statements, hits)`` per file."""

    def write(blocks: NativeBlocks, *, filename: str = "coverage.out") -> Path:
        lines = ["mode: set"]
        for file, items in blocks.items():
            for i, (stmts, hits) in enumerate(items, start=1):
                lines.append(f"{file}:{i}.1,{i}.20 {stmts} {hits}")
        path = tmp_path / filename
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return write


@pytest.fixture
def lcov_file(tmp_path: Path) -> Callable[..., Path]:
    def write(mapping: Mapping[str, LinesSpec], *, filename: str = "lcov.info") -> Path:
        records: list[str] = []
        for file, lines in mapping.items():
            items = lines.items() if isinstance(lines, Mapping) else ((ln, 0) for ln in lines)
            records.append(f"SF:{file}")
            records.extend(f"DA:{ln},{hits}" for ln, hits in items)
            records.append("end_of_record")
        path = tmp_path / filename
        path.write_text("\n".join(records) + "\n", encoding="utf-8")
        return path

    return write


@pytest.fixture
def cobertura_xml_content() -> Callable[..., str]:
    def build(mapping: Mapping[str, LinesSpec]) -> str:
        classes: list[str] = []
        for file, lines in mapping.items():
            items = lines.items() if isinstance(lines, Mapping) else ((ln, 0) for ln in lines)
            lines_xml = "".join(f'<line number="{ln}" hits="{hits}"/>' for ln, hits in items)
            classes.append(f'<class filename="{file}"><lines>{lines_xml}</lines></class>')
        classes_xml = "".join(classes)
        return f'<?xml version="1.0"?><coverage><packages><package><classes>{classes_xml}</classes></package></packages></coverage>'

    return build


@pytest.fixture
def cobertura_file(tmp_path: Path, cobertura_xml_content: Callable[..., str]) -> Callable[..., Path]:
    def write(mapping: Mapping[str, LinesSpec], *, filename: str = "coverage.xml") -> Path:
        path = tmp_path / filename
        path.write_text(cobertura_xml_content(mapping), encoding="utf-8")
        return path

    return write


@pytest.fixture
def jacoco_file(tmp_path: Path) -> Callable[..., Path]:
    """Write a JaCoCo report; ``packages`` maps package -> sourcefile -> {line: ci}."""

    def write(packages: Mapping[str, Mapping[str, Mapping[int, int]]], *, filename: str = "jacoco.xml") -> Path:
        parts = ['<?xml version="1.0"?><report name="jacoco-app">']
        for package, files in packages.items():
            parts.append(f'<package name="{package}">')
            for name, lines in files.items():
                parts.append(f'<sourcefile name="{name}">')
                parts.extend(
                    f'<line nr="{nr}" mi="{0 if ci else 3}" ci="{ci}" mb="0" cb="0"/>' for nr, ci in lines.items()
                )
                parts.append("</sourcefile>")
            parts.append("</package>")
        parts.append("</report>")
        path = tmp_path / filename
        path.write_text("".join(parts), encoding="utf-8")
        return path

    return write


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Create files (``name -> text``) below ``tmp_path``; directories are created as needed."""

    def make(files: Mapping[str, str], *, root: Path | None = None) -> Path:
        base = root or tmp_path
        for rel, text in files.items():
            path = base / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return base

    return make


# --------------------------------------------------------------------------- #
# In-memory collaborators for the use cases                                   #
# --------------------------------------------------------------------------- #


@dataclass
class FakeConfigLoader:
    config: Config | None = None

    def exists(self, path: Path | None = None) -> bool:
        return self.config is not None

    def load(self, path: Path | None = None) -> Config:
        assert self.config is not None
        return self.config


@dataclass
class FakeAutodetector:
    config: Config = field(default_factory=Config)
    calls: int = 0

    def detect(self) -> Config:
        self.calls += 1
        return self.config


@dataclass
class FakeResolver:
    dirs: dict[str, list[str]] = field(default_factory=dict)
    root: str = "/mod"
    path: str = ""

    def resolve(self, domains: Sequence[DomainSpec]) -> dict[str, list[str]]:
        return {d.name: list(self.dirs.get(d.name, [])) for d in domains}

    def module_root(self) -> str:
        return self.root

    def module_path(self) -> str:
        return self.path


@dataclass
class FakeProfiles:
    by_path: dict[str, dict[str, CoverageStat]] = field(default_factory=dict)

    def parse(self, path: Path, fmt: object = None) -> dict[str, CoverageStat]:
        return dict(self.by_path[Path(path).name])

    def parse_all(self, paths: Sequence[Path], fmt: object = None) -> dict[str, CoverageStat]:
        out: dict[str, CoverageStat] = {}
        for p in paths:
            for file, stat in self.parse(p).items():
                out[file] = out.get(file, CoverageStat()) + stat
        return out


@dataclass
class FakeDiff:
    files: list[str] = field(default_factory=list)
    bases: list[str] = field(default_factory=list)

    def changed_files(self, base: str) -> list[str]:
        self.bases.append(base)
        return list(self.files)


@dataclass
class FakeScanner:
    annotations: dict[str, Annotation] = field(default_factory=dict)

    def scan(self, module_root: str, files: Sequence[str]) -> dict[str, Annotation]:
        return {f: a for f, a in self.annotations.items() if f in files}


@dataclass
class FakeHistoryStore:
    history: History = field(default_factory=History)

    def load(self) -> History:
        return self.history

    def append(self, entry: HistoryEntry) -> None:
        self.history = self.history.append(entry)


@pytest.fixture
def fakes() -> type:
    """Namespace of in-memory collaborator classes."""

    class _Fakes:
        ConfigLoader = FakeConfigLoader
        Autodetector = FakeAutodetector
        Resolver = FakeResolver
        Profiles = FakeProfiles
        Diff = FakeDiff
        Scanner = FakeScanner
        HistoryStore = FakeHistoryStore

    return _Fakes


@pytest.fixture
def two_domain_config() -> Config:
    return Config(
        profile=ProfileConfig(path="coverage.out"),
        policy=Policy(
            default_min=80.0,
            domains=(
                DomainSpec(name="core", match=("./internal/core/...",)),
                DomainSpec(name="api", match=("./internal/api/...",), min=50.0),
            ),
        ),
    )


@pytest.fixture
def entry_factory() -> Callable[..., HistoryEntry]:
    def make(overall: float, *, days_ago: float = 0, domains: Mapping[str, float] | None = None) -> HistoryEntry:
        return HistoryEntry(
            timestamp=FIXED_NOW - timedelta(days=days_ago),
            overall=overall,
            domains={
                name: DomainEntry(name=name, percent=pct, min=80.0, status=Status.PASS)
                for name, pct in (domains or {}).items()
            },
        )

    return make

"""Collaborator protocols the use cases depend on.

Concrete implementations live in ``covgate.adapters``; tests substitute
in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator, Mapping, Sequence
    from pathlib import Path

    from covgate.model.config import Config
    from covgate.model.coverage import CoverageStat
    from covgate.model.history import History, HistoryEntry
    from covgate.model.policy import Annotation, DomainSpec
    from covgate.model.types import Format


Clock = Callable[[], datetime]


class ConfigLoader(Protocol):
    def exists(self, path: Path | None = None) -> bool: ...

    def load(self, path: Path | None = None) -> Config: ...


class Autodetector(Protocol):
    def detect(self) -> Config: ...


class DomainResolver(Protocol):
    def resolve(self, domains: Sequence[DomainSpec]) -> dict[str, list[str]]: ...

    def module_root(self) -> str: ...

    def module_path(self) -> str: ...


class ProfileSource(Protocol):
    def parse(self, path: Path, fmt: Format = ...) -> dict[str, CoverageStat]: ...

    def parse_all(self, paths: Sequence[Path], fmt: Format = ...) -> dict[str, CoverageStat]: ...


class DiffProvider(Protocol):
    def changed_files(self, base: str) -> list[str]: ...


class AnnotationScanner(Protocol):
    def scan(self, module_root: str, files: Sequence[str]) -> Mapping[str, Annotation]: ...


class HistoryStore(Protocol):
    def load(self) -> History: ...

    def append(self, entry: HistoryEntry) -> None: ...


class FileWatcher(Protocol):
    def watch_dir(self, path: Path) -> None: ...

    def events(self, cancel: threading.Event) -> Iterator[None]: ...

    def close(self) -> None: ...


__all__ = [
    "AnnotationScanner",
    "Autodetector",
    "Clock",
    "ConfigLoader",
    "DiffProvider",
    "DomainResolver",
    "FileWatcher",
    "HistoryStore",
    "ProfileSource",
]

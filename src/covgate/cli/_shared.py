"""Wiring and output helpers shared by the covgate commands."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from covgate._meta import logger
from covgate.adapters.annotations import PragmaScanner
from covgate.adapters.autodetect import LayoutAutodetector
from covgate.adapters.config import TomlConfigLoader, find_config
from covgate.adapters.diff import GitDiffProvider
from covgate.adapters.history_store import DEFAULT_HISTORY_PATH, JsonHistoryStore
from covgate.adapters.resolver import GlobResolver
from covgate.cli.exit_codes import exit_code_for
from covgate.coverage.registry import ParserRegistry
from covgate.errors import ConfigNotFoundError, CovgateError
from covgate.render.json import format_json
from covgate.usecases.analytics import AnalyticsService
from covgate.usecases.check import CheckService
from covgate.usecases.history import HistoryService
from covgate.usecases.report import ReportService

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class OutputFormat(StrEnum):
    HUMAN = "human"
    JSON = "json"


@dataclass(slots=True)
class CliState:
    """Global flags collected by the root callback."""

    debug: bool = False
    quiet: bool = False


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Configuration file (default: nearest .covgate.toml / pyproject.toml)."),
]
ProfileOption = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Coverage profile (default: profile.path from the configuration)."),
]
FormatOption = Annotated[
    OutputFormat,
    typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
]
HistoryOption = Annotated[
    Path,
    typer.Option("--history", help="History file."),
]
ColorOption = Annotated[bool, typer.Option("--color", help="Force ANSI colour output.")]
NoColorOption = Annotated[bool, typer.Option("--no-color", help="Disable ANSI colour output.")]

DEFAULT_HISTORY = DEFAULT_HISTORY_PATH


def state_of(ctx: typer.Context) -> CliState:
    obj = ctx.find_root().obj
    return obj if isinstance(obj, CliState) else CliState()


def resolve_use_color(*, color: bool, no_color: bool) -> bool:
    # CLI flags take precedence over TTY detection.
    if no_color:
        return False
    if color:
        return True
    try:
        return bool(getattr(sys.stdout, "isatty", lambda: False)())
    except OSError:
        return False


def project_root(config_path: Path | None) -> Path:
    """Directory domain patterns and profiles are relative to."""
    if config_path is not None:
        if not Path(config_path).is_file():
            msg = f"configuration file not found: {config_path}"
            raise ConfigNotFoundError(msg)
        return Path(config_path).resolve().parent
    found = find_config(Path.cwd())
    return found.parent if found is not None else Path.cwd().resolve()


@dataclass(slots=True)
class Wiring:
    """Concrete adapters for one command invocation."""

    root: Path
    config_loader: TomlConfigLoader = field(init=False)
    autodetector: LayoutAutodetector = field(init=False)
    resolver: GlobResolver = field(init=False)
    registry: ParserRegistry = field(init=False)
    scanner: PragmaScanner = field(init=False)

    def __post_init__(self) -> None:
        self.config_loader = TomlConfigLoader(self.root)
        self.autodetector = LayoutAutodetector(self.root)
        self.resolver = GlobResolver(self.root)
        self.registry = ParserRegistry()
        self.scanner = PragmaScanner()

    @classmethod
    def for_config(cls, config_path: Path | None) -> Wiring:
        return cls(root=project_root(config_path))

    def check_service(self) -> CheckService:
        return CheckService(
            config_loader=self.config_loader,
            autodetector=self.autodetector,
            resolver=self.resolver,
            profiles=self.registry,
            diff=GitDiffProvider(self.root),
            annotations=self.scanner,
            base_dir=self.root,
        )

    def report_service(self) -> ReportService:
        return ReportService(checker=self.check_service())

    def history_service(self) -> HistoryService:
        return HistoryService(
            config_loader=self.config_loader,
            autodetector=self.autodetector,
            resolver=self.resolver,
            profiles=self.registry,
            annotations=self.scanner,
            base_dir=self.root,
        )

    def analytics_service(self) -> AnalyticsService:
        return AnalyticsService(
            config_loader=self.config_loader,
            autodetector=self.autodetector,
            resolver=self.resolver,
            profiles=self.registry,
            annotations=self.scanner,
            base_dir=self.root,
        )

    def history_store(self, path: Path) -> JsonHistoryStore:
        return JsonHistoryStore(path if path.is_absolute() else self.root / path)


def fail(exc: CovgateError, *, debug: bool) -> typer.Exit:
    typer.echo(f"ERROR: {exc}", err=True)
    if debug:
        raise exc
    return typer.Exit(code=exit_code_for(exc))


@contextmanager
def handle_errors(ctx: typer.Context) -> Iterator[None]:
    """Translate covgate errors into ``ERROR: ...`` on stderr and a sysexits code."""
    try:
        yield
    except CovgateError as exc:
        logger.debug("command failed", exc_info=True)
        raise fail(exc, debug=state_of(ctx).debug) from exc


def emit(
    fmt: OutputFormat,
    command: str,
    *,
    payload: Callable[[], dict[str, Any]],
    human: Callable[[], str],
) -> None:
    if fmt is OutputFormat.JSON:
        typer.echo(format_json(command, payload()))
    else:
        typer.echo(human())


__all__ = [
    "DEFAULT_HISTORY",
    "CliState",
    "ColorOption",
    "ConfigOption",
    "FormatOption",
    "HistoryOption",
    "NoColorOption",
    "OutputFormat",
    "ProfileOption",
    "Wiring",
    "emit",
    "fail",
    "handle_errors",
    "project_root",
    "resolve_use_color",
    "state_of",
]

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from covgate.adapters.autodetect import LayoutAutodetector
from covgate.adapters.config import write_config
from covgate.cli._shared import (
    ColorOption,
    FormatOption,
    NoColorOption,
    OutputFormat,
    emit,
    handle_errors,
    resolve_use_color,
)
from covgate.model.types import Language
from covgate.render.human import render_detect
from covgate.render.json import detect_payload

DEFAULT_CONFIG_NAME = ".covgate.toml"


def detect_cmd(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Argument(help="Project directory (default: current directory)."),
    ] = None,
    language: Annotated[
        Language,
        typer.Option("--language", "-l", help="Skip marker detection and use this language.", case_sensitive=False),
    ] = Language.AUTO,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Where --write puts the configuration (default: ROOT/.covgate.toml)."),
    ] = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    write: Annotated[bool, typer.Option("--write", help="Save the detected configuration as TOML.")] = False,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing configuration file.")] = False,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Preview the domains covgate would use for a project, optionally saving them."""
    project = root or Path.cwd()
    written: Path | None = None
    with handle_errors(ctx):
        cfg = LayoutAutodetector(project, language=language).detect()
        if write:
            written = write_config(output or project / DEFAULT_CONFIG_NAME, cfg, force=force)

    emit(
        output_format,
        "detect",
        payload=lambda: detect_payload(cfg, written=written),
        human=lambda: render_detect(cfg, written=written, color=resolve_use_color(color=color, no_color=no_color)),
    )


def register(app: typer.Typer) -> None:
    app.command("detect")(detect_cmd)


__all__ = ["register"]

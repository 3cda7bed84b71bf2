from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from covgate.cli._shared import (
    ColorOption,
    ConfigOption,
    FormatOption,
    NoColorOption,
    OutputFormat,
    ProfileOption,
    Wiring,
    emit,
    handle_errors,
    resolve_use_color,
)
from covgate.cli.exit_codes import EXIT_THRESHOLD
from covgate.render.human import render_check
from covgate.render.json import check_payload
from covgate.usecases.check import CheckOptions


def check_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    domain: Annotated[
        list[str] | None,
        typer.Option("--domain", "-d", help="Only evaluate this domain (repeatable)."),
    ] = None,
    history: Annotated[
        Path | None,
        typer.Option("--history", help="Show deltas against the latest entry of this history file."),
    ] = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Evaluate a coverage profile against the configured domain policy."""
    with handle_errors(ctx):
        wiring = Wiring.for_config(config)
        store = wiring.history_store(history) if history is not None else None
        outcome = wiring.check_service().check(
            CheckOptions(
                config_path=config,
                profile=profile,
                domains=tuple(domain or ()),
                history=store,
            )
        )

    emit(
        output_format,
        "check",
        payload=lambda: check_payload(outcome.result, outcome.events),
        human=lambda: render_check(outcome.result, color=resolve_use_color(color=color, no_color=no_color)),
    )
    if not outcome.result.passed:
        raise typer.Exit(code=EXIT_THRESHOLD)


def register(app: typer.Typer) -> None:
    app.command("check")(check_cmd)


__all__ = ["register"]

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
from covgate.model.types import SuggestStrategy
from covgate.render.human import render_compare, render_debt, render_suggest
from covgate.render.json import compare_payload, debt_payload, suggest_payload


def suggest_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    strategy: Annotated[
        SuggestStrategy,
        typer.Option("--strategy", "-s", help="How far to raise thresholds.", case_sensitive=False),
    ] = SuggestStrategy.CURRENT,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Suggest per-domain minimums from the current coverage."""
    with handle_errors(ctx):
        result = Wiring.for_config(config).analytics_service().suggest(strategy, config_path=config, profile=profile)

    emit(
        output_format,
        "suggest",
        payload=lambda: suggest_payload(result),
        human=lambda: render_suggest(result, color=resolve_use_color(color=color, no_color=no_color)),
    )


def debt_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """List domains and files below their minimum, largest shortfall first."""
    with handle_errors(ctx):
        report = Wiring.for_config(config).analytics_service().debt(config_path=config, profile=profile)

    emit(
        output_format,
        "debt",
        payload=lambda: debt_payload(report),
        human=lambda: render_debt(report, color=resolve_use_color(color=color, no_color=no_color)),
    )


def compare_cmd(
    ctx: typer.Context,
    base: Annotated[Path, typer.Argument(..., help="Baseline coverage profile.")],
    head: Annotated[Path, typer.Argument(..., help="Current coverage profile.")],
    config: ConfigOption = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Show per-file and per-domain coverage change between two profiles."""
    with handle_errors(ctx):
        report = Wiring.for_config(config).analytics_service().compare(base, head, config_path=config)

    emit(
        output_format,
        "compare",
        payload=lambda: compare_payload(report),
        human=lambda: render_compare(report, color=resolve_use_color(color=color, no_color=no_color)),
    )


def register(app: typer.Typer) -> None:
    app.command("suggest")(suggest_cmd)
    app.command("debt")(debt_cmd)
    app.command("compare")(compare_cmd)


__all__ = ["register"]

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from covgate.cli._shared import (
    DEFAULT_HISTORY,
    ColorOption,
    ConfigOption,
    FormatOption,
    HistoryOption,
    NoColorOption,
    OutputFormat,
    ProfileOption,
    Wiring,
    emit,
    handle_errors,
    resolve_use_color,
)
from covgate.model.trend import DEFAULT_LOOKBACK
from covgate.render.human import render_entry, render_trend
from covgate.render.json import entry_payload, trend_payload
from covgate.usecases.history import RecordOptions, TrendOptions


def record_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    history: HistoryOption = DEFAULT_HISTORY,
    commit: Annotated[str, typer.Option("--commit", help="Commit identifier stored with the entry.")] = "",
    branch: Annotated[str, typer.Option("--branch", help="Branch name stored with the entry.")] = "",
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Append the current per-domain coverage to the history file."""
    with handle_errors(ctx):
        wiring = Wiring.for_config(config)
        entry, warnings = wiring.history_service().record(
            RecordOptions(config_path=config, profile=profile, commit=commit, branch=branch),
            wiring.history_store(Path(history)),
        )

    emit(
        output_format,
        "record",
        payload=lambda: entry_payload(entry, warnings),
        human=lambda: render_entry(entry, warnings, color=resolve_use_color(color=color, no_color=no_color)),
    )


def trend_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    history: HistoryOption = DEFAULT_HISTORY,
    days: Annotated[
        int,
        typer.Option("--days", min=0, help="Only use history from the last N days for statistics (0 = all)."),
    ] = 0,
    lookback: Annotated[
        int,
        typer.Option("--lookback", min=2, help="Entries used for the linear prediction."),
    ] = DEFAULT_LOOKBACK,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Compare the current profile with the most recent history entry."""
    with handle_errors(ctx):
        wiring = Wiring.for_config(config)
        report = wiring.history_service().trend(
            TrendOptions(config_path=config, profile=profile, days=days, lookback=lookback),
            wiring.history_store(Path(history)),
        )

    emit(
        output_format,
        "trend",
        payload=lambda: trend_payload(report),
        human=lambda: render_trend(report, color=resolve_use_color(color=color, no_color=no_color)),
    )


def register(app: typer.Typer) -> None:
    app.command("record")(record_cmd)
    app.command("trend")(trend_cmd)


__all__ = ["register"]

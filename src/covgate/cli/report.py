from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from covgate.cli._shared import (
    DEFAULT_HISTORY,
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
from covgate.render.human import render_check, render_ignore
from covgate.render.json import check_payload, ignore_payload
from covgate.usecases.report import ReportOptions


def report_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    domain: Annotated[
        list[str] | None,
        typer.Option("--domain", "-d", help="Only report this domain (repeatable)."),
    ] = None,
    merge: Annotated[
        list[str] | None,
        typer.Option("--merge", help="Merge an additional coverage profile (repeatable)."),
    ] = None,
    diff: Annotated[
        str | None,
        typer.Option("--diff", help="Only report files changed since this git ref."),
    ] = None,
    history: Annotated[
        Path | None,
        typer.Option("--history", help="History file used by --show-delta."),
    ] = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    uncovered: Annotated[bool, typer.Option("--uncovered", help="Only list files with 0% coverage.")] = False,
    show_delta: Annotated[
        bool,
        typer.Option("--show-delta", help="Show the change since the latest history entry."),
    ] = False,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Show coverage against the policy without failing the run."""
    with handle_errors(ctx):
        wiring = Wiring.for_config(config)
        store = None
        if show_delta or history is not None:
            store = wiring.history_store(history if history is not None else DEFAULT_HISTORY)
        outcome = wiring.report_service().report(
            ReportOptions(
                config_path=config,
                profile=profile,
                domains=tuple(domain or ()),
                history=store,
                uncovered=uncovered,
                diff_ref=diff,
                merge=tuple(merge or ()),
            )
        )

    emit(
        output_format,
        "report",
        payload=lambda: check_payload(outcome.result, outcome.events),
        human=lambda: render_check(
            outcome.result,
            color=resolve_use_color(color=color, no_color=no_color),
            files_title="Uncovered files" if uncovered else "File rules",
        ),
    )


def ignore_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-p", help="Also list the files excluded from this coverage profile."),
    ] = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Show configured excludes and the files they remove."""
    with handle_errors(ctx):
        info = Wiring.for_config(config).report_service().ignore(config_path=config, profile=profile)

    emit(
        output_format,
        "ignore",
        payload=lambda: ignore_payload(info),
        human=lambda: render_ignore(info, color=resolve_use_color(color=color, no_color=no_color)),
    )


def register(app: typer.Typer) -> None:
    app.command("report")(report_cmd)
    app.command("ignore")(ignore_cmd)


__all__ = ["register"]

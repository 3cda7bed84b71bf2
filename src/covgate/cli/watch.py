from __future__ import annotations

import threading
from typing import Annotated

import typer

from covgate.adapters.watcher import WatchConfig, WatchdogWatcher
from covgate.cli._shared import (
    ColorOption,
    ConfigOption,
    NoColorOption,
    ProfileOption,
    Wiring,
    handle_errors,
    resolve_use_color,
)
from covgate.errors import CovgateError, WatchCancelledError
from covgate.render.human import render_check
from covgate.usecases.check import CheckOptions, CheckOutcome
from covgate.usecases.watch import watch


def watch_cmd(
    ctx: typer.Context,
    config: ConfigOption = None,
    profile: ProfileOption = None,
    domain: Annotated[
        list[str] | None,
        typer.Option("--domain", "-d", help="Only evaluate this domain (repeatable)."),
    ] = None,
    debounce: Annotated[
        float,
        typer.Option("--debounce", min=0.0, help="Seconds of quiet before re-running."),
    ] = 0.4,
    *,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Re-run ``check`` whenever sources or the coverage profile change (Ctrl-C to stop)."""
    use_color = resolve_use_color(color=color, no_color=no_color)
    cancel = threading.Event()

    with handle_errors(ctx):
        wiring = Wiring.for_config(config)
        service = wiring.check_service()
        options = CheckOptions(config_path=config, profile=profile, domains=tuple(domain or ()))

        def _report(run_number: int, outcome: CheckOutcome | None, error: CovgateError | None) -> None:
            typer.echo(f"--- run {run_number} ---")
            if error is not None:
                typer.echo(f"ERROR: {error}", err=True)
            elif outcome is not None:
                typer.echo(render_check(outcome.result, color=use_color))

        watcher = WatchdogWatcher(WatchConfig(debounce_s=debounce))
        try:
            runs = watch(wiring.root, watcher, lambda: service.check(options), _report, cancel)
        except KeyboardInterrupt:
            cancel.set()
            typer.echo("\nStopping...")
            return
        except WatchCancelledError as exc:
            typer.echo(str(exc))
            return
    typer.echo(f"watcher closed after {runs} run(s)")


def register(app: typer.Typer) -> None:
    app.command("watch")(watch_cmd)


__all__ = ["register"]

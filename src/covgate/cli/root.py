from __future__ import annotations

import logging
from typing import Annotated

import typer
from typer.main import get_command

from covgate import __version__
from covgate._meta import LOG_FORMAT, logger
from covgate.cli import analytics, check, detect, history, report, watch
from covgate.cli._shared import CliState


def _configure_runtime(*, quiet: bool, verbose: bool, debug: bool) -> None:
    """Configure logging based on *quiet*/*verbose*/*debug*."""
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)

    if debug:
        logger.debug("debug mode active")


def create_app() -> typer.Typer:
    app = typer.Typer(help="Per-domain coverage policy enforcement for multi-language codebases.")

    @app.callback(invoke_without_command=True)
    def _root(
        ctx: typer.Context,
        *,
        version: Annotated[
            bool,
            typer.Option("--version", is_eager=True, help="Show version and exit"),
        ] = False,
        verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress messages.")] = False,
        quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only log errors.")] = False,
        debug: Annotated[bool, typer.Option("--debug", help="Log everything and re-raise errors.")] = False,
    ) -> None:
        if version:
            typer.echo(f"covgate {__version__}")
            raise typer.Exit
        _configure_runtime(quiet=quiet, verbose=verbose, debug=debug)
        ctx.obj = CliState(debug=debug, quiet=quiet)
        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help())
            raise typer.Exit

    check.register(app)
    report.register(app)
    history.register(app)
    analytics.register(app)
    watch.register(app)
    detect.register(app)

    return app


def main() -> None:
    app = create_app()
    get_command(app)()


# Click-compatible object for tooling that imports it
cli = get_command(create_app())

__all__ = ["cli", "create_app", "main"]

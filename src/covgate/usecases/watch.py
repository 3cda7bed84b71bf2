"""Re-run an evaluation whenever watched sources change."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from covgate._meta import logger
from covgate.errors import CovgateError, WatchCancelledError

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable
    from pathlib import Path

    from covgate.usecases.ports import FileWatcher

T = TypeVar("T")

_CLOSED = object()


def _run_once(run: Callable[[], T], run_number: int) -> tuple[T | None, CovgateError | None]:
    logger.debug("watch run %d starting", run_number)
    try:
        return run(), None
    except CovgateError as exc:
        logger.info("watch run %d failed: %s", run_number, exc)
        return None, exc


def watch(
    root: Path,
    watcher: FileWatcher,
    run: Callable[[], T],
    callback: Callable[[int, T | None, CovgateError | None], None] | None,
    cancel: threading.Event,
) -> int:
    """Run ``run`` once, then once more per change notification from ``watcher``.

    Runs are strictly sequential. Errors raised by ``run`` that belong to the
    covgate hierarchy are handed to ``callback`` and do not stop the loop.
    Returns the number of runs when the watcher closes; raises
    ``WatchCancelledError`` when ``cancel`` is set.
    """
    watcher.watch_dir(root)
    run_number = 0
    try:
        events = watcher.events(cancel)
        while True:
            if cancel.is_set():
                msg = f"watch cancelled after {run_number} run(s)"
                raise WatchCancelledError(msg)
            run_number += 1
            result, error = _run_once(run, run_number)
            if callback is not None:
                callback(run_number, result, error)
            if next(events, _CLOSED) is _CLOSED and not cancel.is_set():
                logger.debug("watcher closed after %d run(s)", run_number)
                return run_number
    finally:
        watcher.close()


__all__ = ["watch"]

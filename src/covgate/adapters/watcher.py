"""File-change notifications for ``covgate watch``, built on watchdog."""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from covgate._meta import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

DEFAULT_EXTENSIONS = (".go", ".py", ".js", ".jsx", ".ts", ".tsx", ".java", ".kt", ".rs", ".toml")
PROFILE_EXTENSIONS = (".out", ".info", ".lcov", ".xml")
DEFAULT_IGNORE_DIRS = (
    ".git",
    ".covgate",
    ".tox",
    ".venv",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "node_modules",
    "build",
    "dist",
    "target",
)
POLL_INTERVAL_S = 0.25

_CLOSED = object()


@dataclass(frozen=True)
class WatchConfig:
    debounce_s: float = 0.4
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS + PROFILE_EXTENSIONS
    ignore_dirs: tuple[str, ...] = DEFAULT_IGNORE_DIRS


def is_ignored(path: Path, root: Path, ignore_dirs: Iterable[str]) -> bool:
    try:
        rel = path.resolve().relative_to(root.resolve())
    except ValueError:
        return True
    parts = set(rel.parts)
    return any(d in parts for d in ignore_dirs)


class DebouncedChangeHandler(FileSystemEventHandler):
    """Coalesces bursts of relevant file events into one notification on ``sink``."""

    def __init__(self, root: Path, cfg: WatchConfig, sink: queue.Queue[object]) -> None:
        self.root = root
        self.cfg = cfg
        self.sink = sink
        self._lock = threading.Lock()
        self._deadline: float | None = None
        self._timer: threading.Thread | None = None

    def relevant(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        path = Path(str(event.src_path))
        if path.suffix not in self.cfg.extensions:
            return False
        return not is_ignored(path, self.root, self.cfg.ignore_dirs)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self.relevant(event):
            return
        with self._lock:
            self._deadline = time.monotonic() + self.cfg.debounce_s
            if self._timer is None or not self._timer.is_alive():
                self._timer = threading.Thread(target=self._debounce_loop, daemon=True)
                self._timer.start()

    def _debounce_loop(self) -> None:
        while True:
            with self._lock:
                if self._deadline is None:
                    return
                remaining = self._deadline - time.monotonic()
                if remaining <= 0:
                    self._deadline = None
                    break
            time.sleep(min(remaining, POLL_INTERVAL_S))
        logger.debug("change detected under %s", self.root)
        self.sink.put(None)


class WatchdogWatcher:
    """``FileWatcher`` backed by a watchdog ``Observer`` thread feeding a queue."""

    def __init__(self, cfg: WatchConfig | None = None) -> None:
        self.cfg = cfg or WatchConfig()
        self._queue: queue.Queue[object] = queue.Queue()
        self._observer = Observer()
        self._started = False

    def watch_dir(self, path: Path) -> None:
        root = Path(path).resolve()
        handler = DebouncedChangeHandler(root, self.cfg, self._queue)
        self._observer.schedule(handler, str(root), recursive=True)
        if not self._started:
            self._observer.start()
            self._started = True
        logger.info("watching %s", root)

    def events(self, cancel: threading.Event) -> Iterator[None]:
        """Yield once per debounced change until ``cancel`` is set or the watcher is closed."""
        while not cancel.is_set():
            try:
                item = self._queue.get(timeout=POLL_INTERVAL_S)
            except queue.Empty:
                continue
            if item is _CLOSED:
                return
            yield None

    def notify(self) -> None:
        """Inject a change notification (used by callers that detect changes themselves)."""
        self._queue.put(None)

    def close(self) -> None:
        self._queue.put(_CLOSED)
        if self._started:
            self._observer.stop()
            self._observer.join()
            self._started = False


__all__ = ["PROFILE_EXTENSIONS", "DebouncedChangeHandler", "WatchConfig", "WatchdogWatcher", "is_ignored"]

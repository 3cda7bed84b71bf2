"""JSON-file history store.

Document layout::

    {"entries": [{"timestamp": "...", "commit": "...", "branch": "...",
                  "overall": 81.2, "domains": {"core": {...}}}]}

Appends hold an exclusive advisory lock on ``<path>.lock`` (POSIX only) and
replace the document atomically. Entries are never trimmed.
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from covgate._meta import logger
from covgate.errors import HistoryError
from covgate.model.history import DomainEntry, History, HistoryEntry
from covgate.model.types import Status

if sys.platform != "win32":
    import fcntl

if TYPE_CHECKING:
    from collections.abc import Iterator

DEFAULT_HISTORY_PATH = Path(".covgate") / "history.json"


def entry_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "timestamp": entry.timestamp.isoformat(),
        "commit": entry.commit,
        "branch": entry.branch,
        "overall": entry.overall,
        "domains": {
            name: {"name": d.name, "percent": d.percent, "min": d.min, "status": d.status.value}
            for name, d in entry.domains.items()
        },
    }


def entry_from_dict(data: dict[str, Any]) -> HistoryEntry:
    timestamp = datetime.fromisoformat(data["timestamp"])
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    domains = {
        name: DomainEntry(
            name=d.get("name", name),
            percent=float(d["percent"]),
            min=float(d.get("min", 0.0)),
            status=Status(d.get("status", Status.PASS)),
        )
        for name, d in data.get("domains", {}).items()
    }
    return HistoryEntry(
        timestamp=timestamp,
        overall=float(data["overall"]),
        domains=domains,
        commit=data.get("commit", ""),
        branch=data.get("branch", ""),
    )


def history_from_text(text: str, *, source: str = "<string>") -> History:
    try:
        doc = json.loads(text)
        return History(entries=tuple(entry_from_dict(e) for e in doc.get("entries", [])))
    except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as exc:
        msg = f"corrupt history file {source}: {exc}"
        raise HistoryError(msg) from exc


def history_to_text(history: History) -> str:
    return json.dumps({"entries": [entry_to_dict(e) for e in history.entries]}, indent=2) + "\n"


class JsonHistoryStore:
    """``HistoryStore`` persisted as a single JSON document."""

    def __init__(self, path: Path = DEFAULT_HISTORY_PATH) -> None:
        self.path = Path(path)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if sys.platform == "win32":
            yield
            return
        lock_path = self.path.with_name(self.path.name + ".lock")
        with lock_path.open("a") as fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def load(self) -> History:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return History()
        except OSError as exc:
            msg = f"failed to read history {self.path}: {exc}"
            raise HistoryError(msg) from exc
        return history_from_text(text, source=str(self.path))

    def save(self, history: History) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(history_to_text(history))
            Path(tmp).replace(self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def append(self, entry: HistoryEntry) -> None:
        with self._locked():
            history = self.load().append(entry)
            self.save(history)
        logger.debug("history %s now has %d entries", self.path, len(history))


__all__ = [
    "DEFAULT_HISTORY_PATH",
    "JsonHistoryStore",
    "entry_from_dict",
    "entry_to_dict",
    "history_from_text",
    "history_to_text",
]

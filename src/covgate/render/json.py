"""Machine-readable output, validated against ``covgate/data/result.schema.json``."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timedelta
from enum import Enum
from functools import cache
from importlib import resources
from typing import TYPE_CHECKING, Any

from jsonschema import validate

from covgate import __version__
from covgate.adapters.history_store import entry_to_dict

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from covgate.model.config import Config
    from covgate.model.events import DomainEvent
    from covgate.model.history import HistoryEntry
    from covgate.model.thresholds import EvaluationResult
    from covgate.usecases.analytics import CompareReport, DebtReport, SuggestResult
    from covgate.usecases.history import TrendReport
    from covgate.usecases.report import IgnoreInfo


@cache
def get_schema() -> dict[str, object]:
    """Load and cache the JSON schema for structured output."""
    text = resources.files("covgate.data").joinpath("result.schema.json").read_text(encoding="utf-8")
    return json.loads(text)


def _plain(obj: object) -> object:
    """Convert enums, datetimes and containers into JSON-compatible values."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, dict):
        return {str(k): _plain(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [_plain(v) for v in obj]
    return obj


def event_to_dict(event: DomainEvent) -> dict[str, Any]:
    data = {"type": event.event_type, **asdict(event)}
    return _plain(data)  # type: ignore[return-value]


def check_payload(result: EvaluationResult, events: Sequence[DomainEvent] = ()) -> dict[str, Any]:
    domains = []
    for d in result.domains:
        row: dict[str, Any] = {
            "name": d.name,
            "covered": d.stat.covered,
            "total": d.stat.total,
            "percent": d.percent,
            "required": d.required,
            "status": d.status.value,
            "shortfall": d.shortfall,
        }
        if d.delta is not None:
            row["delta"] = d.delta
        domains.append(row)
    files = [
        {
            "file": f.file,
            "covered": f.stat.covered,
            "total": f.stat.total,
            "percent": f.percent,
            "required": f.required,
            "status": f.status.value,
            "shortfall": f.shortfall,
        }
        for f in result.files
    ]
    return {
        "passed": result.passed,
        "overall": result.overall_percent,
        "domains": domains,
        "files": files,
        "warnings": list(result.warnings),
        "events": [event_to_dict(e) for e in events],
    }


def entry_payload(entry: HistoryEntry, warnings: Sequence[str] = ()) -> dict[str, Any]:
    return {**entry_to_dict(entry), "warnings": list(warnings)}


def trend_payload(report: TrendReport) -> dict[str, Any]:
    analysis = report.analysis
    return {
        "previous": analysis.previous,
        "current": analysis.current,
        "trend": _plain(asdict(analysis.overall)),
        "domains": {name: _plain(asdict(d)) for name, d in analysis.domains.items()},
        "period_seconds": analysis.period.total_seconds(),
        "stats": {
            **_plain(asdict(report.stats)),  # type: ignore[dict-item]
            "volatility": report.stats.volatility,
            "consistency_score": report.stats.consistency_score,
        },
        "prediction": _plain(asdict(report.prediction)),
        "entries": [entry_to_dict(e) for e in report.entries],
        "events": [event_to_dict(e) for e in report.events],
        "warnings": list(report.warnings),
    }


def suggest_payload(result: SuggestResult) -> dict[str, Any]:
    return {"suggestions": [_plain(asdict(s)) for s in result.suggestions]}


def debt_payload(report: DebtReport) -> dict[str, Any]:
    return _plain(asdict(report))  # type: ignore[return-value]


def compare_payload(report: CompareReport) -> dict[str, Any]:
    return _plain(asdict(report))  # type: ignore[return-value]


def detect_payload(cfg: Config, *, written: Path | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "language": cfg.language.value,
        "module_path": cfg.module_path,
        "profile": {"format": cfg.profile.format.value, "path": cfg.profile.path},
        "policy": _plain(asdict(cfg.policy)),
    }
    if written is not None:
        data["written"] = str(written)
    return data


def ignore_payload(info: IgnoreInfo) -> dict[str, Any]:
    return {
        "exclude": list(info.exclude),
        "domains": [{"name": d.name, "match": list(d.match), "exclude": list(d.exclude)} for d in info.domains],
        "files": [_plain(asdict(c)) for c in info.files],
        "ignored_files": list(info.ignored_files),
    }


def format_json(command: str, data: dict[str, Any]) -> str:
    """Wrap ``data`` in the versioned envelope, validate it and serialise."""
    payload: dict[str, object] = {
        "schema": str(get_schema()["$id"]),
        "tool": {"name": "covgate", "version": __version__},
        "command": command,
        "data": data,
    }
    validate(payload, get_schema())
    return json.dumps(payload, indent=2, sort_keys=True)


__all__ = [
    "check_payload",
    "compare_payload",
    "debt_payload",
    "detect_payload",
    "entry_payload",
    "event_to_dict",
    "format_json",
    "get_schema",
    "ignore_payload",
    "suggest_payload",
    "trend_payload",
]

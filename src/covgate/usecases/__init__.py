"""Use cases wiring parsers, the engine and the model to collaborator ports."""

from __future__ import annotations

from covgate.usecases.analytics import AnalyticsService
from covgate.usecases.check import CheckOptions, CheckOutcome, CheckService
from covgate.usecases.config import load_or_detect
from covgate.usecases.history import HistoryService, RecordOptions, TrendOptions, TrendReport
from covgate.usecases.report import IgnoreInfo, ReportOptions, ReportService
from covgate.usecases.watch import watch

__all__ = [
    "AnalyticsService",
    "CheckOptions",
    "CheckOutcome",
    "CheckService",
    "HistoryService",
    "IgnoreInfo",
    "RecordOptions",
    "ReportOptions",
    "ReportService",
    "TrendOptions",
    "TrendReport",
    "load_or_detect",
    "watch",
]

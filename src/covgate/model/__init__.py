"""Domain model for covgate (pure types + policy; no IO)."""

from .config import AnnotationsConfig, Config, DiffConfig, MergeConfig, ProfileConfig
from .coverage import CoverageStat, merge_maps
from .events import CoverageEvaluated, CoverageImproved, CoverageRegressed, DomainEvent, ThresholdViolated
from .history import DomainEntry, History, HistoryEntry, Trend, build_entry, calculate_trend
from .metrics import pct, round1
from .path_filter import matches_any, to_key
from .policy import Annotation, DomainSpec, FileRule, Policy
from .thresholds import DomainResult, EvaluationResult, FileResult, evaluate, evaluate_file_rules
from .trend import HistoryStats, Prediction, TrendAnalysis, analyze_history, analyze_trend, predict_next
from .types import Format, Language, MergePolicy, Status, SuggestStrategy, TrendDirection

__all__ = [
    "Annotation",
    "AnnotationsConfig",
    "Config",
    "CoverageEvaluated",
    "CoverageImproved",
    "CoverageRegressed",
    "CoverageStat",
    "DiffConfig",
    "DomainEntry",
    "DomainEvent",
    "DomainResult",
    "DomainSpec",
    "EvaluationResult",
    "FileResult",
    "FileRule",
    "Format",
    "History",
    "HistoryEntry",
    "HistoryStats",
    "Language",
    "MergeConfig",
    "MergePolicy",
    "Policy",
    "Prediction",
    "ProfileConfig",
    "Status",
    "SuggestStrategy",
    "ThresholdViolated",
    "Trend",
    "TrendAnalysis",
    "TrendDirection",
    "analyze_history",
    "analyze_trend",
    "build_entry",
    "calculate_trend",
    "evaluate",
    "evaluate_file_rules",
    "matches_any",
    "merge_maps",
    "pct",
    "predict_next",
    "round1",
    "to_key",
]

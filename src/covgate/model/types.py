"""Shared type aliases and enumerations used across covgate."""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Status(StrEnum):
    """Outcome of comparing a coverage percentage with its thresholds."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class TrendDirection(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class Format(StrEnum):
    """Supported coverage profile formats."""

    AUTO = "auto"
    NATIVE = "native"  # `mode:` text profile (go test -coverprofile)
    LCOV = "lcov"
    COBERTURA = "cobertura"
    JACOCO = "jacoco"


class MergePolicy(StrEnum):
    """How the same file is combined when it appears in several profiles."""

    SUM = "sum"  # disjoint suites contribute distinct statements
    MAX = "max"  # repeated runs over the same statements


class Language(StrEnum):
    AUTO = "auto"
    GO = "go"
    PYTHON = "python"
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    JAVA = "java"
    RUST = "rust"


class SuggestStrategy(StrEnum):
    """Threshold suggestion strategies."""

    CURRENT = "current"
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"


FULL_COVERAGE: int = 100

# Net change (percentage points) above which a trend raises an event.
SIGNIFICANT_CHANGE: float = 1.0

# Dead band used when classifying consecutive history entries.
STABLE_BAND: float = 0.5


__all__ = [
    "FULL_COVERAGE",
    "SIGNIFICANT_CHANGE",
    "STABLE_BAND",
    "Format",
    "Language",
    "MergePolicy",
    "Status",
    "SuggestStrategy",
    "TrendDirection",
]

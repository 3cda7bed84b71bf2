from __future__ import annotations

import math

from covgate.model.types import FULL_COVERAGE


def round1(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    scaled = math.floor(abs(value) * 10 + 0.5) / 10
    return math.copysign(scaled, value) if scaled else 0.0


def pct(covered: int, total: int) -> float:
    """Return the rounded coverage percentage; an empty total counts as 0%."""
    if total == 0:
        return 0.0
    return round1((covered / total) * FULL_COVERAGE)


__all__ = ["pct", "round1"]

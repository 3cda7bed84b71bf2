from __future__ import annotations

from covgate.engine.aggregate import AggregationInput, Classification, aggregate, classify, overlap_warnings
from covgate.engine.normalize import PathNormalizer, normalize_coverage_map

__all__ = [
    "AggregationInput",
    "Classification",
    "PathNormalizer",
    "aggregate",
    "classify",
    "normalize_coverage_map",
    "overlap_warnings",
]

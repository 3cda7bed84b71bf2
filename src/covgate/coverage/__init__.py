from __future__ import annotations

from covgate.coverage.detect import detect_format
from covgate.coverage.discover import resolve_profile_paths
from covgate.coverage.registry import MERGE_POLICIES, ParserRegistry

__all__ = ["MERGE_POLICIES", "ParserRegistry", "detect_format", "resolve_profile_paths"]

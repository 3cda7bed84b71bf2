from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from covgate.coverage.registry import MERGE_POLICIES, ParserRegistry
from covgate.errors import ParseError
from covgate.model.coverage import CoverageStat
from covgate.model.types import Format, MergePolicy


def test_supported_formats_cover_every_concrete_format() -> None:
    assert set(ParserRegistry().supported_formats()) == {
        Format.NATIVE,
        Format.LCOV,
        Format.COBERTURA,
        Format.JACOCO,
    }


def test_undetectable_profile_falls_back_to_native(tmp_path: Path) -> None:
    path = tmp_path / "report.xml"
    path.write_text("<root/>", encoding="utf-8")
    assert ParserRegistry().resolve_format(path) is Format.NATIVE


def test_parse_detects_format(tmp_path: Path) -> None:
    path = tmp_path / "profile"
    path.write_text("mode: set\na.go:1.1,2.2 3 1\n", encoding="utf-8")
    assert ParserRegistry().parse(path) == {"a.go": CoverageStat(covered=3, total=3)}


def test_explicit_format_skips_detection(lcov_file: Callable[..., Path]) -> None:
    path = lcov_file({"a.js": {1: 1}}, filename="coverage.out")
    assert ParserRegistry().parse(path, Format.LCOV) == {"a.js": CoverageStat(covered=1, total=1)}


def test_unknown_format_raises() -> None:
    registry = ParserRegistry(parsers={})
    with pytest.raises(ParseError, match="no parser"):
        registry.parser_for(Format.LCOV)


def test_lcov_runs_merge_with_max(lcov_file: Callable[..., Path]) -> None:
    first = lcov_file({"a.js": {1: 1, 2: 0, 3: 0, 4: 0}}, filename="unit.info")
    second = lcov_file({"a.js": {1: 1, 2: 1, 3: 0, 4: 0}}, filename="e2e.info")
    merged = ParserRegistry().parse_all([first, second])
    # Both runs instrument the same four lines: 2/4, not 3/8.
    assert merged == {"a.js": CoverageStat(covered=2, total=4)}


def test_native_profiles_merge_with_sum(native_profile: Callable[..., Path]) -> None:
    first = native_profile({"a.go": [(2, 1)]}, filename="unit.out")
    second = native_profile({"a.go": [(3, 0)], "b.go": [(1, 1)]}, filename="integration.out")
    merged = ParserRegistry().parse_all([first, second])
    assert merged == {
        "a.go": CoverageStat(covered=2, total=5),
        "b.go": CoverageStat(covered=1, total=1),
    }


def test_mixed_formats_sum_across_formats(
    native_profile: Callable[..., Path],
    lcov_file: Callable[..., Path],
) -> None:
    go = native_profile({"shared": [(2, 1)]})
    js = lcov_file({"shared": {1: 0, 2: 0}})
    assert ParserRegistry().parse_all([go, js]) == {"shared": CoverageStat(covered=2, total=4)}


def test_merge_policy_table() -> None:
    assert MERGE_POLICIES[Format.LCOV] is MergePolicy.MAX
    assert MERGE_POLICIES[Format.NATIVE] is MergePolicy.SUM


def test_real_jacoco_report_is_parsed_without_explicit_format(tmp_path: Path) -> None:
    path = tmp_path / "jacoco.xml"
    path.write_text(
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<!DOCTYPE report PUBLIC "-//JACOCO//DTD Report 1.1//EN" "report.dtd">'
        '<report name="my-service"><package name="com/example"><sourcefile name="Foo.java">'
        '<line nr="1" mi="0" ci="2" mb="0" cb="0"/><line nr="2" mi="3" ci="0" mb="0" cb="0"/>'
        "</sourcefile></package></report>",
        encoding="utf-8",
    )
    registry = ParserRegistry()
    assert registry.resolve_format(path) is Format.JACOCO
    assert registry.parse(path) == {"com/example/Foo.java": CoverageStat(covered=1, total=2)}


def test_parsing_twice_yields_identical_maps(
    native_profile: Callable[..., Path],
    lcov_file: Callable[..., Path],
    cobertura_file: Callable[..., Path],
    jacoco_file: Callable[..., Path],
) -> None:
    profiles = [
        native_profile({"a.go": [(2, 1), (3, 0)]}),
        lcov_file({"a.js": {1: 1, 2: 0}}),
        cobertura_file({"pkg/a.py": {1: 1, 2: 0, 3: 4}}),
        jacoco_file({"com/example": {"Foo.java": {1: 2, 2: 0}}}),
    ]
    registry = ParserRegistry()
    for path in profiles:
        first = registry.parse(path)
        assert first
        assert registry.parse(path) == first

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import pytest

from covgate.errors import ConfigurationError
from covgate.model.coverage import CoverageStat
from covgate.model.events import CoverageEvaluated, ThresholdViolated
from covgate.model.history import History, HistoryEntry
from covgate.model.metrics import pct, round1
from covgate.model.policy import Annotation, DomainSpec, FileRule, Policy, validate_file_rules
from covgate.model.thresholds import (
    determine_status,
    drop_empty_domains,
    evaluate,
    evaluate_file_rules,
    filter_coverage,
    shortfall,
    with_deltas,
)
from covgate.model.types import Status


@pytest.mark.parametrize(
    ("value", "expected"),
    [(80.04, 80.0), (2.25, 2.3), (-2.25, -2.3), (66.666, 66.7), (0.0, 0.0)],
)
def test_round1_halves_away_from_zero(value: float, expected: float) -> None:
    assert round1(value) == expected


def test_pct_of_empty_total_is_zero() -> None:
    assert pct(0, 0) == 0.0
    assert pct(2, 3) == 66.7


def test_coverage_stat_rejects_covered_above_total() -> None:
    with pytest.raises(ValueError, match="exceeds total"):
        CoverageStat(covered=3, total=2)


@pytest.mark.parametrize(
    ("percent", "required", "warn", "expected"),
    [
        (80.0, 80.0, None, Status.PASS),
        (79.9, 80.0, None, Status.FAIL),
        (85.0, 80.0, 90.0, Status.WARN),
        (90.0, 80.0, 90.0, Status.PASS),
        (70.0, 80.0, 90.0, Status.FAIL),
    ],
)
def test_determine_status(percent: float, required: float, warn: float | None, expected: Status) -> None:
    assert determine_status(percent, required, warn) is expected


def test_shortfall() -> None:
    assert shortfall(75.0, 80.0) == 5.0
    assert shortfall(85.0, 80.0) == 0.0


# --------------------------------------------------------------------------- #
# policy validation                                                           #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    ("policy", "pattern"),
    [
        (Policy(default_min=80.0), "no domains"),
        (Policy(default_min=101.0, domains=(DomainSpec("a"),)), "default minimum"),
        (Policy(domains=(DomainSpec("  "),)), "cannot be empty"),
        (Policy(domains=(DomainSpec("a"), DomainSpec("a"))), "duplicate"),
        (Policy(domains=(DomainSpec("a", min=-1.0),)), "between 0 and 100"),
        (Policy(domains=(DomainSpec("a", warn=120.0),)), "warn"),
    ],
)
def test_policy_validation(policy: Policy, pattern: str) -> None:
    with pytest.raises(ConfigurationError, match=pattern):
        policy.validate()


def test_file_rule_validation() -> None:
    with pytest.raises(ConfigurationError, match="file rule"):
        validate_file_rules([FileRule(match=("*.py",), min=150.0)])


def test_select_restricts_domains() -> None:
    policy = Policy(domains=(DomainSpec("a"), DomainSpec("b")))
    assert policy.select(["b"]).names == ("b",)
    assert policy.select([]) is policy


# --------------------------------------------------------------------------- #
# evaluate                                                                    #
# --------------------------------------------------------------------------- #


def test_boundary_passes(clock: Callable[[], datetime]) -> None:
    policy = Policy(default_min=80.0, domains=(DomainSpec("core"),))
    result, events = evaluate(policy, {"core": CoverageStat(covered=80, total=100)}, clock=clock)
    assert result.passed
    assert result.domains[0].status is Status.PASS
    assert [type(e) for e in events] == [CoverageEvaluated]


def test_failing_domain_raises_violation_event(clock: Callable[[], datetime]) -> None:
    policy = Policy(
        default_min=80.0,
        domains=(DomainSpec("core"), DomainSpec("api", min=50.0)),
    )
    coverage = {"core": CoverageStat(covered=7, total=10), "api": CoverageStat(covered=6, total=10)}
    result, events = evaluate(policy, coverage, clock=clock)

    assert not result.passed
    assert result.failing_count == 1
    core = result.domain("core")
    assert core is not None
    assert core.shortfall == 10.0
    assert result.overall_percent == 65.0

    violation, summary = events
    assert isinstance(violation, ThresholdViolated)
    assert (violation.domain, violation.actual, violation.required) == ("core", 70.0, 80.0)
    assert violation.shortfall == 10.0
    assert violation.occurred_at == clock()
    assert isinstance(summary, CoverageEvaluated)
    assert (summary.passed, summary.domain_count, summary.failed_count) == (False, 2, 1)


def test_missing_domain_evaluates_as_empty(clock: Callable[[], datetime]) -> None:
    policy = Policy(default_min=0.0, domains=(DomainSpec("ghost"),))
    result, _ = evaluate(policy, {}, clock=clock)
    assert result.passed
    assert result.domains[0].percent == 0.0


def test_warn_does_not_fail(clock: Callable[[], datetime]) -> None:
    policy = Policy(default_min=80.0, domains=(DomainSpec("core", warn=90.0),))
    result, _ = evaluate(policy, {"core": CoverageStat(covered=85, total=100)}, clock=clock)
    assert result.passed
    assert result.warning_count == 1


def test_evaluate_does_not_mutate_inputs(clock: Callable[[], datetime]) -> None:
    policy = Policy(default_min=80.0, domains=(DomainSpec("core"),))
    coverage = {"core": CoverageStat(covered=1, total=2)}
    evaluate(policy, coverage, clock=clock)
    assert coverage == {"core": CoverageStat(covered=1, total=2)}
    assert policy.domains == (DomainSpec("core"),)


# --------------------------------------------------------------------------- #
# diff mode and file rules                                                    #
# --------------------------------------------------------------------------- #


def test_filter_coverage_and_drop_empty_domains(clock: Callable[[], datetime]) -> None:
    coverage = {"core/a.go": CoverageStat(1, 2), "api/b.go": CoverageStat(0, 4)}
    assert filter_coverage(coverage, None) == coverage
    assert filter_coverage(coverage, {"core/a.go"}) == {"core/a.go": CoverageStat(1, 2)}

    policy = Policy(default_min=80.0, domains=(DomainSpec("core"), DomainSpec("api")))
    trimmed = drop_empty_domains(policy, {"core": CoverageStat(2, 2)})
    assert trimmed.names == ("core",)
    result, _ = evaluate(trimmed, {"core": CoverageStat(2, 2)}, clock=clock)
    assert result.passed


def test_file_rules_use_strictest_matching_rule() -> None:
    coverage = {
        "core/a.py": CoverageStat(covered=7, total=10),
        "core/b.py": CoverageStat(covered=10, total=10),
        "docs/c.py": CoverageStat(covered=0, total=10),
    }
    rules = (FileRule(match=("core/*",), min=50.0), FileRule(match=("core/a.py",), min=75.0))
    files, passed = evaluate_file_rules(coverage, rules)
    assert not passed
    assert [(f.file, f.required, f.status) for f in files] == [
        ("core/a.py", 75.0, Status.FAIL),
        ("core/b.py", 50.0, Status.PASS),
    ]
    assert files[0].shortfall == 5.0


def test_file_rules_skip_excluded_and_ignored_files() -> None:
    coverage = {"a.py": CoverageStat(0, 1), "b.py": CoverageStat(0, 1), "c.py": CoverageStat(1, 1)}
    files, passed = evaluate_file_rules(
        coverage,
        (FileRule(match=("*.py",), min=100.0),),
        exclude=("a.py",),
        annotations={"b.py": Annotation(ignore=True)},
    )
    assert passed
    assert [f.file for f in files] == ["c.py"]


def test_no_file_rules_is_a_pass() -> None:
    assert evaluate_file_rules({"a.py": CoverageStat(0, 1)}, ()) == ((), True)


def test_with_deltas_against_latest_entry(
    clock: Callable[[], datetime],
    entry_factory: Callable[..., HistoryEntry],
) -> None:
    policy = Policy(default_min=0.0, domains=(DomainSpec("core"), DomainSpec("new")))
    result, _ = evaluate(policy, {"core": CoverageStat(85, 100), "new": CoverageStat(1, 1)}, clock=clock)
    history = History(
        entries=(
            entry_factory(70.0, days_ago=2, domains={"core": 10.0}),
            entry_factory(80.0, domains={"core": 80.0}),
        )
    )

    enriched = with_deltas(result, history)
    assert enriched.domain("core").delta == 5.0  # type: ignore[union-attr]
    assert enriched.domain("new").delta is None  # type: ignore[union-attr]
    assert with_deltas(result, History()) is result

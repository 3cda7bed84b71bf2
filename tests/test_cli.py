from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest
from click.testing import CliRunner

from covgate import __version__
from covgate.cli.exit_codes import EXIT_CONFIG, EXIT_DATAERR, EXIT_NOINPUT, EXIT_OK, EXIT_THRESHOLD
from covgate.cli.root import cli

MOD = "example.com/mod"

CONFIG = dedent(
    """
    version = 1
    language = "go"

    [profile]
    format = "native"
    path = "coverage.out"

    [policy]
    default_min = 80

    [[policy.domains]]
    name = "core"
    match = ["./internal/core/..."]

    [[policy.domains]]
    name = "api"
    match = ["./internal/api/..."]
    min = 50
    """
)

# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #


def _run(runner: CliRunner, args: list[str]) -> tuple[int, str]:
    result = runner.invoke(cli, args)
    return result.exit_code, result.output


def _json(runner: CliRunner, args: list[str]) -> dict[str, object]:
    result = runner.invoke(cli, [*args, "--format", "json"])
    assert result.exit_code in {EXIT_OK, EXIT_THRESHOLD}, result.output
    doc = json.loads(result.stdout)
    assert doc["tool"] == {"name": "covgate", "version": __version__}
    return doc


@pytest.fixture
def go_project(
    tmp_path: Path,
    make_tree: Callable[..., Path],
    native_profile: Callable[..., Path],
) -> Path:
    """Go module where core is at 80% and api at 60%; no configuration file."""
    make_tree(
        {
            "go.mod": f"module {MOD}\n\ngo 1.22\n",
            "internal/core/a.go": "package core\n",
            "internal/api/b.go": "package api\n",
        }
    )
    native_profile(
        {
            f"{MOD}/internal/core/a.go": [(8, 1), (2, 0)],
            f"{MOD}/internal/api/b.go": [(6, 1), (4, 0)],
        }
    )
    return tmp_path


@pytest.fixture
def configured(go_project: Path) -> Path:
    config = go_project / ".covgate.toml"
    config.write_text(CONFIG, encoding="utf-8")
    return config


# --------------------------------------------------------------------------- #
# tests                                                                       #
# --------------------------------------------------------------------------- #


def test_version(cli_runner: CliRunner) -> None:
    code, out = _run(cli_runner, ["--version"])
    assert code == EXIT_OK
    assert out.strip() == f"covgate {__version__}"


def test_no_command_prints_help(cli_runner: CliRunner) -> None:
    code, out = _run(cli_runner, [])
    assert code == EXIT_OK
    assert "Usage" in out
    assert "check" in out


def test_check_passes(cli_runner: CliRunner, configured: Path) -> None:
    code, out = _run(cli_runner, ["check", "--config", str(configured), "--no-color"])
    assert code == EXIT_OK, out
    assert "core" in out
    assert "api" in out
    assert "Overall 70.0% PASS" in out


def test_check_discovers_config_from_cwd(
    cli_runner: CliRunner,
    configured: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(configured.parent / "internal")
    code, out = _run(cli_runner, ["check"])
    assert code == EXIT_OK, out


def test_check_autodetects_without_config(
    cli_runner: CliRunner,
    go_project: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(go_project)
    # Autodetected domains use the default 80% minimum, which api misses.
    code, out = _run(cli_runner, ["check"])
    assert code == EXIT_THRESHOLD, out
    assert "FAIL" in out


def test_check_json(cli_runner: CliRunner, configured: Path) -> None:
    doc = _json(cli_runner, ["check", "-c", str(configured)])
    assert doc["command"] == "check"
    data = doc["data"]
    assert data["passed"] is True
    assert [(d["name"], d["percent"], d["status"]) for d in data["domains"]] == [
        ("core", 80.0, "PASS"),
        ("api", 60.0, "PASS"),
    ]
    assert [e["type"] for e in data["events"]] == ["CoverageEvaluated"]


def test_check_domain_filter(cli_runner: CliRunner, configured: Path) -> None:
    doc = _json(cli_runner, ["check", "-c", str(configured), "--domain", "api"])
    assert [d["name"] for d in doc["data"]["domains"]] == ["api"]


def test_unknown_domain_is_a_config_error(cli_runner: CliRunner, configured: Path) -> None:
    code, out = _run(cli_runner, ["check", "-c", str(configured), "-d", "nope"])
    assert code == EXIT_CONFIG
    assert "ERROR: no matching domains found for: nope" in out


def test_missing_profile(cli_runner: CliRunner, configured: Path) -> None:
    code, out = _run(cli_runner, ["check", "-c", str(configured), "--profile", "missing.out"])
    assert code == EXIT_NOINPUT
    assert "coverage profile not found" in out


def test_malformed_profile(cli_runner: CliRunner, configured: Path) -> None:
    (configured.parent / "coverage.out").write_text("this is not a profile\n", encoding="utf-8")
    code, out = _run(cli_runner, ["check", "-c", str(configured)])
    assert code == EXIT_DATAERR
    assert "mode:" in out


def test_missing_explicit_config(cli_runner: CliRunner, tmp_path: Path) -> None:
    code, out = _run(cli_runner, ["check", "--config", str(tmp_path / "absent.toml")])
    assert code == EXIT_CONFIG
    assert "configuration file not found" in out


def test_invalid_config(cli_runner: CliRunner, configured: Path) -> None:
    configured.write_text(CONFIG.replace("default_min = 80", "default_min = 150"), encoding="utf-8")
    code, out = _run(cli_runner, ["check", "-c", str(configured)])
    assert code == EXIT_CONFIG
    assert "invalid configuration" in out


def test_debug_reraises(cli_runner: CliRunner, tmp_path: Path) -> None:
    result = cli_runner.invoke(cli, ["--debug", "check", "--config", str(tmp_path / "absent.toml")])
    assert result.exit_code != EXIT_OK
    assert result.exception is not None


def test_record_then_trend(cli_runner: CliRunner, configured: Path) -> None:
    history = configured.parent / "history.json"
    code, out = _run(
        cli_runner,
        ["record", "-c", str(configured), "--history", str(history), "--commit", "abc123", "--no-color"],
    )
    assert code == EXIT_OK, out
    stored = json.loads(history.read_text(encoding="utf-8"))
    assert [e["commit"] for e in stored["entries"]] == ["abc123"]

    doc = _json(cli_runner, ["trend", "-c", str(configured), "--history", str(history)])
    data = doc["data"]
    assert data["trend"]["direction"] == "stable"
    assert data["current"] == 70.0
    assert data["stats"]["entries_count"] == 1


def test_trend_without_history(cli_runner: CliRunner, configured: Path) -> None:
    code, out = _run(cli_runner, ["trend", "-c", str(configured), "--history", str(configured.parent / "none.json")])
    assert code == EXIT_DATAERR
    assert "no history data" in out


def test_trend_with_corrupt_history(cli_runner: CliRunner, configured: Path) -> None:
    history = configured.parent / "history.json"
    history.write_text("{not json", encoding="utf-8")
    code, _out = _run(cli_runner, ["trend", "-c", str(configured), "--history", str(history)])
    assert code == EXIT_DATAERR


def test_check_ignores_corrupt_history_for_deltas(cli_runner: CliRunner, configured: Path) -> None:
    history = configured.parent / "history.json"
    history.write_text("{not json", encoding="utf-8")
    code, out = _run(cli_runner, ["check", "-c", str(configured), "--history", str(history)])
    assert code == EXIT_OK, out


def test_suggest(cli_runner: CliRunner, configured: Path) -> None:
    doc = _json(cli_runner, ["suggest", "-c", str(configured), "--strategy", "aggressive"])
    suggested = {s["domain"]: s["suggested_min"] for s in doc["data"]["suggestions"]}
    assert suggested == {"core": 85.0, "api": 65.0}


def test_debt(cli_runner: CliRunner, configured: Path) -> None:
    configured.write_text(CONFIG.replace("min = 50", "min = 70"), encoding="utf-8")
    doc = _json(cli_runner, ["debt", "-c", str(configured)])
    data = doc["data"]
    assert [(i["name"], i["shortfall"], i["lines"]) for i in data["items"]] == [("api", 10.0, 1)]
    assert data["health_score"] == 50.0


def test_compare(cli_runner: CliRunner, configured: Path, native_profile: Callable[..., Path]) -> None:
    head = native_profile(
        {
            f"{MOD}/internal/core/a.go": [(8, 1), (2, 1)],
            f"{MOD}/internal/api/b.go": [(6, 1), (4, 0)],
        },
        filename="head.out",
    )
    base = configured.parent / "coverage.out"
    doc = _json(cli_runner, ["compare", str(base), str(head), "-c", str(configured)])
    data = doc["data"]
    assert data["delta"] == 10.0
    assert [f["file"] for f in data["improved"]] == ["internal/core/a.go"]
    assert data["domain_deltas"] == {"core": 20.0, "api": 0.0}


def test_detect(cli_runner: CliRunner, go_project: Path) -> None:
    doc = _json(cli_runner, ["detect", str(go_project)])
    data = doc["data"]
    assert data["language"] == "go"
    assert data["module_path"] == MOD
    assert data["profile"] == {"format": "native", "path": "coverage.out"}
    assert [d["name"] for d in data["policy"]["domains"]] == ["api", "core"]


def test_report_never_fails_the_run(cli_runner: CliRunner, configured: Path) -> None:
    configured.write_text(CONFIG.replace("min = 50", "min = 90"), encoding="utf-8")
    code, out = _run(cli_runner, ["report", "-c", str(configured), "--no-color"])
    assert code == EXIT_OK, out
    assert "FAIL" in out


def test_report_uncovered(
    cli_runner: CliRunner,
    configured: Path,
    native_profile: Callable[..., Path],
) -> None:
    native_profile(
        {
            f"{MOD}/internal/core/a.go": [(8, 1)],
            f"{MOD}/internal/core/z.go": [(3, 0)],
        },
        filename="zero.out",
    )
    result = cli_runner.invoke(
        cli, ["report", "-c", str(configured), "-p", "zero.out", "--uncovered", "--format", "json"]
    )
    assert result.exit_code == EXIT_OK, result.output
    data = json.loads(result.stdout)["data"]
    assert [f["file"] for f in data["files"]] == ["internal/core/z.go"]
    assert data["passed"] is False
    assert data["warnings"] == ["1 files have 0% coverage"]


def test_report_show_delta_reads_history(cli_runner: CliRunner, configured: Path) -> None:
    history = configured.parent / "history.json"
    _run(cli_runner, ["record", "-c", str(configured), "--history", str(history)])
    doc = _json(cli_runner, ["report", "-c", str(configured), "--show-delta", "--history", str(history)])
    assert doc["command"] == "report"
    assert {d["name"]: d["delta"] for d in doc["data"]["domains"]} == {"core": 0.0, "api": 0.0}


def test_ignore_lists_excludes_and_excluded_files(cli_runner: CliRunner, configured: Path) -> None:
    configured.write_text(
        CONFIG.replace('language = "go"', 'language = "go"\nexclude = ["internal/api/*"]'),
        encoding="utf-8",
    )
    doc = _json(cli_runner, ["ignore", "-c", str(configured)])
    data = doc["data"]
    assert data["exclude"] == ["internal/api/*"]
    assert [d["name"] for d in data["domains"]] == ["core", "api"]
    assert [(f["file"], f["reason"]) for f in data["files"]] == [
        ("internal/api/b.go", "matches global exclude pattern"),
    ]

    code, out = _run(cli_runner, ["ignore", "-c", str(configured), "--no-color"])
    assert code == EXIT_OK, out
    assert "  - internal/api/*" in out


def test_detect_write_creates_a_loadable_config(
    cli_runner: CliRunner,
    go_project: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    code, out = _run(cli_runner, ["detect", str(go_project), "--write", "--no-color"])
    assert code == EXIT_OK, out
    config = go_project / ".covgate.toml"
    assert f"Config written to {config}" in out

    monkeypatch.chdir(go_project)
    code, out = _run(cli_runner, ["check", "-c", str(config), "--no-color"])
    assert code == EXIT_THRESHOLD, out

    code, out = _run(cli_runner, ["detect", str(go_project), "--write"])
    assert code == EXIT_CONFIG
    assert "already exists" in out

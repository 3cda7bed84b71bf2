"""Human-readable output rendered with rich tables."""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

from covgate.model.types import Status, TrendDirection

if TYPE_CHECKING:
    from pathlib import Path

    from covgate.model.config import Config
    from covgate.model.history import HistoryEntry
    from covgate.model.thresholds import EvaluationResult
    from covgate.usecases.analytics import CompareReport, DebtReport, SuggestResult
    from covgate.usecases.history import TrendReport
    from covgate.usecases.report import IgnoreInfo

_STATUS_STYLE = {Status.PASS: "green", Status.WARN: "yellow", Status.FAIL: "red"}
_ARROWS = {TrendDirection.UP: "↑", TrendDirection.DOWN: "↓", TrendDirection.STABLE: "→"}


def _render(*renderables: object, color: bool) -> str:
    buf = StringIO()
    console = Console(
        file=buf,
        force_terminal=color,
        color_system="standard" if color else None,
        no_color=not color,
        width=120,
    )
    for item in renderables:
        console.print(item)
    return buf.getvalue().rstrip()


def _status(status: Status) -> str:
    style = _STATUS_STYLE[status]
    return f"[{style}]{status.value}[/{style}]"


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _delta(value: float | None) -> str:
    if value is None:
        return "-"
    if value > 0:
        return f"[green]+{value:.1f}[/green]"
    if value < 0:
        return f"[red]{value:.1f}[/red]"
    return "0.0"


def _warnings(warnings: tuple[str, ...] | list[str]) -> list[str]:
    return [f"[yellow]warning:[/yellow] {w}" for w in warnings]


def render_check(result: EvaluationResult, *, color: bool = False, files_title: str = "File rules") -> str:
    out: list[object] = []
    if result.domains:
        table = Table(title="Domain coverage", box=box.SIMPLE_HEAVY, header_style="bold")
        table.add_column("Domain")
        table.add_column("Covered", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Coverage", justify="right")
        table.add_column("Required", justify="right")
        table.add_column("Status")
        table.add_column("Δ", justify="right")
        for d in result.domains:
            table.add_row(
                d.name,
                str(d.stat.covered),
                str(d.stat.total),
                _pct(d.percent),
                _pct(d.required),
                _status(d.status),
                _delta(d.delta),
            )
        out.append(table)

    if result.files:
        files = Table(title=files_title, box=box.SIMPLE_HEAVY, header_style="bold")
        files.add_column("File", overflow="fold")
        files.add_column("Coverage", justify="right")
        files.add_column("Required", justify="right")
        files.add_column("Status")
        for f in result.files:
            files.add_row(f.file, _pct(f.percent), _pct(f.required), _status(f.status))
        out.append(files)

    out.extend(_warnings(result.warnings))
    verdict = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
    out.append(f"Overall {_pct(result.overall_percent)} {verdict}")
    return _render(*out, color=color)


def render_entry(entry: HistoryEntry, warnings: list[str] | tuple[str, ...] = (), *, color: bool = False) -> str:
    table = Table(title=f"Recorded {entry.timestamp.isoformat()}", box=box.SIMPLE_HEAVY, header_style="bold")
    table.add_column("Domain")
    table.add_column("Coverage", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Status")
    for d in entry.domains.values():
        table.add_row(d.name, _pct(d.percent), _pct(d.min), _status(d.status))
    return _render(table, *_warnings(warnings), f"Overall {_pct(entry.overall)}", color=color)


def render_trend(report: TrendReport, *, color: bool = False) -> str:
    analysis = report.analysis
    arrow = _ARROWS[analysis.overall.direction]
    lines: list[object] = [
        f"Overall {_pct(analysis.previous)} {arrow} {_pct(analysis.current)} ({_delta(analysis.overall.delta)})"
    ]
    if analysis.domains:
        table = Table(title="Domain trends", box=box.SIMPLE_HEAVY, header_style="bold")
        table.add_column("Domain")
        table.add_column("Previous", justify="right")
        table.add_column("Current", justify="right")
        table.add_column("Trend")
        for d in analysis.domains.values():
            table.add_row(
                d.name,
                _pct(d.previous),
                _pct(d.current),
                f"{_ARROWS[d.trend.direction]} {_delta(d.trend.delta)}",
            )
        lines.append(table)
    stats = report.stats
    lines.append(
        f"History: {stats.entries_count} entries, high {_pct(stats.highest)}, "
        f"low {_pct(stats.lowest)}, avg {_pct(stats.average)}, consistency {stats.consistency_score:.1f}"
    )
    lines.append(
        f"Predicted next: {_pct(report.prediction.value)} (confidence {report.prediction.confidence:.1f}%)"
    )
    lines.extend(_warnings(report.warnings))
    return _render(*lines, color=color)


def render_suggest(result: SuggestResult, *, color: bool = False) -> str:
    table = Table(title="Suggested thresholds", box=box.SIMPLE_HEAVY, header_style="bold")
    table.add_column("Domain")
    table.add_column("Current", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Suggested", justify="right")
    table.add_column("Reason")
    for s in result.suggestions:
        table.add_row(s.domain, _pct(s.current_percent), _pct(s.current_min), _pct(s.suggested_min), s.reason)
    return _render(table, color=color)


def render_debt(report: DebtReport, *, color: bool = False) -> str:
    if not report.items:
        return _render(f"No coverage debt. Health score {report.health_score:.1f}%", color=color)
    table = Table(title="Coverage debt", box=box.SIMPLE_HEAVY, header_style="bold")
    table.add_column("Name", overflow="fold")
    table.add_column("Type")
    table.add_column("Current", justify="right")
    table.add_column("Required", justify="right")
    table.add_column("Shortfall", justify="right")
    table.add_column("Lines", justify="right")
    for item in report.items:
        table.add_row(
            item.name,
            item.kind,
            _pct(item.current),
            _pct(item.required),
            f"[red]{item.shortfall:.1f}[/red]",
            str(item.lines),
        )
    summary = (
        f"Total debt {report.total_debt:.1f} points, ~{report.total_lines} lines; "
        f"health score {report.health_score:.1f}%"
    )
    return _render(table, summary, color=color)


def render_compare(report: CompareReport, *, color: bool = False) -> str:
    out: list[object] = [
        f"Overall {_pct(report.base_overall)} → {_pct(report.head_overall)} ({_delta(report.delta)})"
    ]
    for title, rows in (("Improved", report.improved), ("Regressed", report.regressed)):
        if not rows:
            continue
        table = Table(title=title, box=box.SIMPLE_HEAVY, header_style="bold")
        table.add_column("File", overflow="fold")
        table.add_column("Base", justify="right")
        table.add_column("Head", justify="right")
        table.add_column("Δ", justify="right")
        for row in rows:
            table.add_row(row.file, _pct(row.base), _pct(row.head), _delta(row.delta))
        out.append(table)
    out.append(f"{report.unchanged} file(s) unchanged")
    out.extend(f"{name}: {_delta(delta)}" for name, delta in report.domain_deltas.items())
    return _render(*out, color=color)


def render_detect(cfg: Config, *, written: Path | None = None, color: bool = False) -> str:
    table = Table(title=f"Detected {cfg.language.value} project", box=box.SIMPLE_HEAVY, header_style="bold")
    table.add_column("Domain")
    table.add_column("Match", overflow="fold")
    table.add_column("Min", justify="right")
    for spec in cfg.policy.domains:
        table.add_row(spec.name, ", ".join(spec.match), _pct(spec.required(cfg.policy.default_min)))
    lines: list[object] = [table]
    if cfg.module_path:
        lines.append(f"Module {cfg.module_path}")
    profile = cfg.profile.path or "(none found)"
    lines.append(f"Profile {profile} ({cfg.profile.format.value})")
    if written is not None:
        lines.append(f"Config written to {written}")
    return _render(*lines, color=color)


def render_ignore(info: IgnoreInfo, *, color: bool = False) -> str:
    out: list[object] = ["Configured exclude patterns:"]
    if info.exclude:
        out.extend(f"  - {pattern}" for pattern in info.exclude)
    else:
        out.append("  (none yet). Add patterns such as `internal/generated/*` to skip generated code.")

    table = Table(title="Domains tracked by the policy", box=box.SIMPLE_HEAVY, header_style="bold")
    table.add_column("Domain")
    table.add_column("Match", overflow="fold")
    table.add_column("Exclude", overflow="fold")
    for spec in info.domains:
        table.add_row(spec.name, ", ".join(spec.match), ", ".join(spec.exclude) or "-")
    out.append(table)

    if info.files:
        files = Table(title="Excluded files", box=box.SIMPLE_HEAVY, header_style="bold")
        files.add_column("File", overflow="fold")
        files.add_column("Domain")
        files.add_column("Reason")
        for c in info.files:
            files.add_row(c.file, c.domain or "-", c.reason)
        out.append(files)

    out.append(
        "Use `exclude` in .covgate.toml or a `covgate:ignore` pragma to skip generated code "
        "before running `covgate check`."
    )
    return _render(*out, color=color)


__all__ = [
    "render_check",
    "render_compare",
    "render_debt",
    "render_detect",
    "render_entry",
    "render_ignore",
    "render_suggest",
    "render_trend",
]

# Copyright (c) Syntropy Systems
"""Rich rendering for the growthai views."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from growthai.simulation import interval_bar, lift_bar

if TYPE_CHECKING:
    from growthai.config import DisplaySettings
    from growthai.evaluation import EvaluationSummary
    from growthai.events import Notice
    from growthai.models.api import Benchmark, Recommendation, UploadResult
    from growthai.simulation import BarGeometry, SimulationView

TRACK_WIDTH = 40

THEMES = {
    "light": Theme({
        "accent": "blue",
        "muted": "dim",
        "good": "green",
        "warn": "yellow",
        "bad": "red",
        "band.high": "bold green",
        "band.medium": "yellow",
        "band.low": "red",
    }),
    "dark": Theme({
        "accent": "bright_cyan",
        "muted": "grey62",
        "good": "bright_green",
        "warn": "bright_yellow",
        "bad": "bright_red",
        "band.high": "bold bright_green",
        "band.medium": "bright_yellow",
        "band.low": "bright_red",
    }),
}

NOTICE_STYLES = {"success": "good", "info": "accent", "error": "bad"}


def make_console(settings: DisplaySettings) -> Console:
    """Console styled for the user's theme preference."""
    return Console(theme=THEMES[settings.theme])


def print_notice(console: Console, notice: Notice) -> None:
    style = NOTICE_STYLES.get(notice.level, "accent")
    console.print(f"[{style}]{notice.message}[/{style}]")


def money(value: float) -> str:
    return f"₹{value:,.2f}".rstrip("0").rstrip(".")


def render_bar(geometry: BarGeometry, width: int = TRACK_WIDTH) -> str:
    """Draw an interval bar with its median dot as a fixed-width text track."""
    track = ["─"] * width
    start = _cell(geometry.left_pct, width)
    end = _cell(geometry.left_pct + geometry.width_pct, width)
    for i in range(start, end + 1):
        track[i] = "━"
    track[_cell(geometry.dot_pct, width)] = "●"
    return "".join(track)


def _cell(pct: float, width: int) -> int:
    return min(width - 1, max(0, int(pct / 100 * (width - 1) + 0.5)))


def show_upload_result(console: Console, result: UploadResult) -> None:
    console.print("\n[bold]CSV Processed Successfully[/bold]")
    console.print(f"  [muted]clean rows:[/muted] {result.cleaned_rows}")
    console.print(f"  [muted]dropped rows:[/muted] {result.dropped_rows}")
    console.print(f"  [muted]duplicates merged:[/muted] {result.duplicates_merged}")

    if result.warnings:
        console.print("\n[warn]Warnings:[/warn]")
        for warning in result.warnings:
            console.print(f"  - {warning}")

    if not result.preview:
        return

    table = Table(title=f"Data Preview (first {len(result.preview)} rows)", header_style="bold")
    for column in ("Date", "Campaign", "Platform", "Spend", "CTR", "CPA", "ROAS"):
        table.add_column(column)
    for row in result.preview:
        table.add_row(
            row.date,
            row.campaign_name,
            row.platform,
            money(row.spend),
            f"{row.ctr}%",
            money(row.cpa),
            f"{row.roas}x",
        )
    console.print(table)


def show_recommendation_table(console: Console, recommendations: list[Recommendation], total: int) -> None:
    """Display recommendations in a table."""
    console.print(f"\n[bold]Recommendations[/bold] [muted]({len(recommendations)} of {total} shown)[/muted]")
    if not recommendations:
        console.print("[muted]No recommendations match the current filters[/muted]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="muted")
    table.add_column("Type")
    table.add_column("Platform")
    table.add_column("Title")
    table.add_column("Confidence", justify="right")

    for rec in recommendations:
        band = f"band.{rec.confidence_band}"
        table.add_row(
            rec.id,
            rec.type_label,
            rec.platform,
            rec.title,
            f"[{band}]{rec.confidence_pct}%[/{band}]",
        )

    console.print(table)


def show_recommendation(
    console: Console,
    rec: Recommendation,
    citations: list[Benchmark],
    show_details: bool = False,
) -> None:
    """Display one recommendation card with its evidence."""
    band = f"band.{rec.confidence_band}"
    lines = [
        f"[muted]{rec.type_label} · {rec.platform}[/muted]  "
        f"[{band}]{rec.confidence_pct}% confidence[/{band}]",
        rec.description,
        "",
        "[bold]WHY THIS FIRED[/bold]",
        rec.why_fired,
    ]
    if rec.trigger_metrics:
        lines += ["", "[bold]Trigger Metrics[/bold]"]
        lines += [
            f"  {key.replace('_', ' ')}: {value}"
            for key, value in rec.trigger_metrics.items()
        ]
    lines += ["", "[bold]Projected Impact[/bold]", rec.projected_impact]
    if citations:
        lines += ["", "[bold]Supporting Research[/bold]"]
        for bench in citations:
            lines.append(f"  {bench.title} [muted]({bench.year})[/muted]")
            lines.append(f"    {bench.key_finding}")
            lines.append(f"    [accent]{bench.source}[/accent] {bench.source_url}")
    if show_details:
        lines += ["", "[bold]Details[/bold]", json.dumps(rec.details, indent=2)]

    console.print(Panel("\n".join(lines), title=f"[bold]{rec.title}[/bold]", subtitle=rec.id))


def show_simulation(console: Console, view: SimulationView) -> None:
    if view.state == "errored" or view.result is None:
        console.print(f"[bad]Error:[/bad] {view.message or 'Simulation did not complete'}")
        return

    result = view.result
    current = result.current_metrics
    projected = result.projected_metrics

    console.print("\n[bold]Current Performance[/bold]")
    console.print(f"  [muted]avg daily spend:[/muted] {money(current.avg_daily_spend)}")
    console.print(f"  [muted]avg ROAS:[/muted] {current.avg_roas}x")
    if current.has_cpa:
        console.print(f"  [muted]avg CPA:[/muted] {money(float(current.avg_cpa))}")

    roas = projected.roas
    lift = projected.daily_revenue_lift
    console.print("\n[bold]Projected After Action[/bold]")
    console.print(f"  [muted]ROAS:[/muted] {roas.median}x  [muted]90% CI: {roas.p5}x - {roas.p95}x[/muted]")
    console.print(f"  {render_bar(interval_bar(roas.p5, roas.median, roas.p95))}")
    console.print(f"  [muted]daily revenue lift:[/muted] [good]+{money(lift.median)}[/good]  [muted]{result.confidence_interval}[/muted]")
    console.print(f"  {render_bar(lift_bar(lift.p5, lift.median, lift.p95))}")
    if projected.cpa is not None:
        console.print(
            f"  [muted]CPA reduction:[/muted] [good]-{projected.cpa.reduction_pct}%[/good]"
            f"  [muted]new CPA: {money(projected.cpa.median)}[/muted]"
        )

    console.print(f"\n[bold]Summary:[/bold] {result.impact_summary}")
    console.print("[muted]Based on 1,000 bootstrap iterations using last 28 days of campaign data[/muted]")


def show_evaluation(console: Console, summary: EvaluationSummary) -> None:
    console.print("\n[bold]Evaluation Metrics[/bold]")
    if not summary.has_data:
        console.print("[muted]No feedback data yet. Rate some recommendations to see precision metrics.[/muted]")
        return

    console.print(f"  [bold]{summary.overall_pct}%[/bold] overall precision")
    console.print(f"  [muted]{summary.useful_count} useful / {summary.total_feedback} total[/muted]")

    table = Table(title="Precision by Rule Type", header_style="bold")
    table.add_column("Rule")
    table.add_column("Precision", justify="right")
    table.add_column("Useful / Total", justify="right")
    for rule in summary.rules:
        table.add_row(rule.label, f"{rule.precision_pct}%", f"{rule.useful} / {rule.total}")
    console.print(table)

    console.print("[bold]Insights[/bold]")
    if summary.top_rule is not None:
        console.print(
            f"  - Top performing rule: {summary.top_rule.label} "
            f"({summary.top_rule.precision_pct}% precision)"
        )
    else:
        console.print("  - Top performing rule: N/A")
    if summary.low_sample_types:
        labels = ", ".join(
            rule.label for rule in summary.rules if rule.rec_type in summary.low_sample_types
        )
        console.print(f"  - Low sample size: collect more feedback for {labels}.")
    console.print("  - Next step: continue rating recommendations to refine precision estimates.")

# ABOUTME: Provides a CLI that runs progress-monitoring analytics over exported observation tables.
# ABOUTME: Prints trends, projections, decision-rule alerts, and overdue reminders, and exports chart data.

from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.common.config import load_config
from src.common.validation import InvalidRecordError
from src.progress_monitoring.aggregation import build_series, window_start
from src.progress_monitoring.cadence import find_due_students, last_observation_dates
from src.progress_monitoring.decision_rules import AIMLINE_RULE, GOAL_LINE_RULE, alert_guidance
from src.progress_monitoring.export import export_group_analysis
from src.progress_monitoring.pipeline import analyze_group
from src.progress_monitoring.records import goals_from_frame, observations_from_frame

console = Console()
app = typer.Typer(help="Analyze progress-monitoring scores: trends, goal projections, decision rules, and charts.")

ALERT_COLORS = {"aboveGoal": "green", "belowGoal": "red", "variable": "yellow"}


def _read_table(path: Path) -> pd.DataFrame:
    if not path.exists():
        console.print(f"[red]Missing input table at {path}[/red]")
        raise typer.Exit(code=1)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise typer.BadParameter(f"Unsupported table format '{path.suffix}'. Expected .parquet or .csv.")


def _fmt(value, spec: str = ".2f") -> str:
    if value is None:
        return "n/a"
    return format(value, spec)


@app.command()
def analyze(
    observations_path: Path = typer.Option(..., "--observations", help="Observations table (.parquet or .csv)."),
    measure_type: str = typer.Option(..., "--measure-type", help="Measure type to analyze, e.g. ORF."),
    goals_path: Optional[Path] = typer.Option(None, "--goals", help="Student goals table (.parquet or .csv)."),
    group_id: Optional[str] = typer.Option(None, "--group-id", help="Restrict to one group."),
    last_days: Optional[int] = typer.Option(None, "--last-days", help="Only use the last N days of data (30, 60, 90)."),
    rule: str = typer.Option(GOAL_LINE_RULE, "--rule", help="Decision rule baseline: goal_line or aimline."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics config YAML."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Write chart JSON, metrics parquet, and digest here."),
) -> None:
    """
    Run the full analysis for one measure type and print per-student results.
    """
    if rule not in (GOAL_LINE_RULE, AIMLINE_RULE):
        raise typer.BadParameter(f"Unsupported rule '{rule}'.", param_hint="--rule")

    config = load_config(config_path)
    obs_df = _read_table(observations_path)
    goals_df = _read_table(goals_path) if goals_path is not None else None
    if group_id is not None:
        obs_df = obs_df[obs_df["group_id"].astype(str) == group_id]
        if goals_df is not None:
            goals_df = goals_df[goals_df["group_id"].astype(str) == group_id]

    try:
        observations = observations_from_frame(obs_df)
        goals = goals_from_frame(goals_df) if goals_df is not None else []
    except InvalidRecordError as exc:
        console.print(f"[red]Invalid input: {exc}[/red]")
        raise typer.Exit(code=1) from exc

    try:
        start = window_start(date.today(), last_days)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--last-days") from exc
    date_range = (start, None) if start is not None else None

    analysis = analyze_group(observations, goals, measure_type, date_range=date_range, config=config, rule=rule)

    console.rule(f"[bold blue]Progress Monitoring: {measure_type}[/bold blue]")
    if not analysis.series:
        console.print("[yellow]No progress data available for this selection.[/yellow]")
        return

    if analysis.group_trend is not None:
        console.print(f"[bold]Group weekly slope:[/] {analysis.group_trend.weekly_slope:+.2f}")
    console.print()

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Student", "Points", "Current", "Average", "Trend", "Weeks to Goal", "Actual ROI", "Expected ROI", "On Track"):
        table.add_column(column)
    for student_id, summary in analysis.summaries.items():
        projection = analysis.projections.get(student_id)
        on_track = "unknown" if projection is None or projection.on_track is None else str(projection.on_track)
        table.add_row(
            student_id,
            str(summary.point_count),
            _fmt(summary.current_score, "g"),
            _fmt(summary.average_score, ".1f"),
            summary.trend.value if summary.trend is not None else "n/a",
            _fmt(summary.weeks_to_goal, "d"),
            _fmt(projection.actual_roi if projection else None),
            _fmt(projection.expected_roi if projection else None),
            on_track,
        )
    console.print(table)

    console.print()
    console.print("[bold yellow]Decision Rules[/bold yellow]")
    for student_id, alert in analysis.alerts.items():
        if alert is None:
            console.print(f"[blue]{student_id}: insufficient data[/blue]")
            continue
        guidance = alert_guidance(alert)
        color = ALERT_COLORS.get(alert.kind.value, "white")
        console.print(f"[{color}]{student_id}: {guidance.message}[/{color}]")
        console.print(f"  → {guidance.suggestion}")

    for student_id, result in analysis.goal_issues.items():
        console.print(f"[red]Goal record for {student_id} is invalid: {'; '.join(result.errors)}[/red]")

    if output_dir is not None:
        export_group_analysis(analysis, output_dir)


@app.command("due-check")
def due_check(
    observations_path: Path = typer.Option(..., "--observations", help="Observations table (.parquet or .csv)."),
    measure_type: str = typer.Option(..., "--measure-type", help="Measure type to check."),
    tiers_path: Optional[Path] = typer.Option(None, "--tiers", help="Table with student_id and tier columns."),
    today: Optional[str] = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD); defaults to today."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics config YAML."),
) -> None:
    """
    List students whose progress-monitoring data is overdue for their tier.
    """
    config = load_config(config_path)
    try:
        reference = date.fromisoformat(today) if today else date.today()
    except ValueError as exc:
        raise typer.BadParameter("Date must be in YYYY-MM-DD format", param_hint="--today") from exc

    obs_df = _read_table(observations_path)
    series_map = build_series(observations_from_frame(obs_df), measure_type)

    tiers = {}
    student_ids = list(series_map)
    if tiers_path is not None:
        tiers_df = _read_table(tiers_path)
        tiers = {str(sid): int(tier) for sid, tier in zip(tiers_df["student_id"], tiers_df["tier"])}
        student_ids += [sid for sid in tiers if sid not in series_map]

    reminders = find_due_students(student_ids, last_observation_dates(series_map), reference, tiers, config)
    if not reminders:
        console.print(f"[green]✅ All {len(student_ids)} students are up to date[/green]")
        return
    for reminder in reminders:
        console.print(f"[orange3]{reminder.message}[/orange3]")


if __name__ == "__main__":
    app()

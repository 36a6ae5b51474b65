# ABOUTME: Exports group analysis results for the dashboard rendering layer.
# ABOUTME: Writes chart geometry JSON, per-student metrics parquet, and a markdown digest.

import json
from pathlib import Path
from typing import Dict, List

import pandas as pd

from src.common.schemas import ChartGeometry, GoalMarkerSpec

from .decision_rules import alert_guidance
from .pipeline import GroupAnalysis

METRIC_COLUMNS = [
    "student_id",
    "point_count",
    "current_score",
    "average_score",
    "trend",
    "weekly_slope",
    "weeks_to_goal",
    "actual_roi",
    "expected_roi",
    "on_track",
    "alert",
    "alert_run_length",
]


def geometry_to_dict(geometry: ChartGeometry) -> Dict:
    """JSON-ready chart description: scaled coordinates plus axis ticks."""

    return {
        "width": geometry.width,
        "height": geometry.height,
        "x_domain": [day.isoformat() for day in geometry.x_domain],
        "y_domain": list(geometry.y_domain) if geometry.y_domain is not None else None,
        "x_ticks": [
            {"value": tick.value.isoformat(), "position": tick.position, "label": tick.label}
            for tick in geometry.x_ticks
        ],
        "y_ticks": [{"value": tick.value, "position": tick.position, "label": tick.label} for tick in geometry.y_ticks],
        "series": [
            {"student_id": student_id, "points": [list(p) for p in path.points], "svg_path": path.to_svg()}
            for student_id, path in geometry.series_paths.items()
        ],
        "goal_markers": [_marker_to_dict(marker) for marker in geometry.goal_markers.values()],
    }


def analysis_to_frame(analysis: GroupAnalysis) -> pd.DataFrame:
    """One row per charted student with unrounded metrics."""

    rows: List[Dict] = []
    for student_id, summary in analysis.summaries.items():
        trend = analysis.trends.get(student_id)
        projection = analysis.projections.get(student_id)
        alert = analysis.alerts.get(student_id)
        rows.append(
            {
                "student_id": student_id,
                "point_count": summary.point_count,
                "current_score": summary.current_score,
                "average_score": summary.average_score,
                "trend": summary.trend.value if summary.trend is not None else None,
                "weekly_slope": trend.weekly_slope if trend is not None else None,
                "weeks_to_goal": projection.weeks_to_goal if projection is not None else None,
                "actual_roi": projection.actual_roi if projection is not None else None,
                "expected_roi": projection.expected_roi if projection is not None else None,
                "on_track": projection.on_track if projection is not None else None,
                "alert": alert.kind.value if alert is not None else None,
                "alert_run_length": alert.run_length if alert is not None else None,
            }
        )
    return pd.DataFrame(rows, columns=METRIC_COLUMNS)


def export_group_analysis(analysis: GroupAnalysis, output_dir: Path) -> Dict[str, Path]:
    """
    Write the rendering hand-off artifacts.

    Generates:
    1. pm_chart.json - chart geometry for the dashboard
    2. pm_student_metrics.parquet - per-student trend, projection, and alert metrics
    3. pm_digest.md - readable digest of alerts and projections
    """

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    chart_path = output_dir / "pm_chart.json"
    chart_payload = {
        "measure_type": analysis.measure_type,
        "fingerprint": analysis.fingerprint,
        "geometry": geometry_to_dict(analysis.geometry),
    }
    chart_path.write_text(json.dumps(chart_payload, indent=2), encoding="utf-8")
    print(f"✅ Exported chart geometry for {len(analysis.geometry.series_paths)} students to {chart_path}")

    metrics_path = output_dir / "pm_student_metrics.parquet"
    metrics_df = analysis_to_frame(analysis)
    metrics_df.to_parquet(metrics_path, index=False)
    print(f"✅ Exported {len(metrics_df)} student metric rows to {metrics_path}")

    digest_path = output_dir / "pm_digest.md"
    _write_digest(analysis, digest_path)
    print(f"✅ Exported digest to {digest_path}")

    return {"chart": chart_path, "metrics": metrics_path, "digest": digest_path}


def _marker_to_dict(marker: GoalMarkerSpec) -> Dict:
    return {
        "student_id": marker.student_id,
        "goal_score": marker.goal_score,
        "goal_line": [list(marker.goal_line.start), list(marker.goal_line.end)],
        "benchmark_point": list(marker.benchmark_point) if marker.benchmark_point is not None else None,
        "aimline": [list(marker.aimline.start), list(marker.aimline.end)] if marker.aimline is not None else None,
    }


def _write_digest(analysis: GroupAnalysis, output_path: Path) -> None:
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(f"# Progress Monitoring Digest: {analysis.measure_type}\n\n")
        f.write(f"Students charted: {len(analysis.series)}\n\n")

        if analysis.group_trend is not None:
            f.write(f"Group weekly slope: {analysis.group_trend.weekly_slope:+.2f}\n\n")

        f.write("## Students\n\n")
        f.write("| student | points | current | trend | weeks to goal | actual ROI | expected ROI | on track |\n")
        f.write("|---------|--------|---------|-------|---------------|------------|--------------|----------|\n")
        for student_id, summary in analysis.summaries.items():
            projection = analysis.projections.get(student_id)
            shown = projection.rounded() if projection is not None else {}
            f.write(
                f"| {student_id} | {summary.point_count} | {_cell(summary.current_score)} | "
                f"{summary.trend.value if summary.trend is not None else 'n/a'} | "
                f"{_cell(shown.get('weeks_to_goal'))} | {_cell(shown.get('actual_roi'))} | "
                f"{_cell(shown.get('expected_roi'))} | {_cell(shown.get('on_track'))} |\n"
            )
        f.write("\n")

        f.write("## Decision Rules\n\n")
        if not analysis.alerts:
            f.write("No students with goals on this measure.\n")
        for student_id, alert in analysis.alerts.items():
            if alert is None:
                f.write(f"- {student_id}: insufficient data\n")
                continue
            guidance = alert_guidance(alert)
            f.write(f"- {student_id}: {guidance.message} ({alert.triggered_at_date.isoformat()}). {guidance.suggestion}\n")

        if analysis.goal_issues:
            f.write("\n## Goal Record Issues\n\n")
            for student_id, result in analysis.goal_issues.items():
                f.write(f"- {student_id}: {'; '.join(result.errors)}\n")


def _cell(value) -> str:
    return "n/a" if value is None else str(value)

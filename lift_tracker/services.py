from __future__ import annotations

from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

import pandas as pd

from .metrics import sessions_to_dataframe
from .models import SessionInput
from .statistics import (
    AllTimeStats,
    ComputedStatistics,
    MuscleGroupStat,
    PeriodComparison,
    PersonalRecord,
    StrengthTrendPoint,
)
from .streaks import StreakData


def _render_table(headers: Sequence[str], rows: Sequence[Mapping[str, str]]) -> str:
    widths = {key: len(key) for key in headers}
    for row in rows:
        for key in headers:
            widths[key] = max(widths[key], len(row[key]))

    def _format_line(values: Mapping[str, str]) -> str:
        return "  ".join(values[key].rjust(widths[key]) for key in headers)

    header_line = "  ".join(key.upper().rjust(widths[key]) for key in headers)
    body = "\n".join(_format_line(row) for row in rows)
    return "\n".join(filter(None, [header_line, body]))


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def _format_change(value: int) -> str:
    return f"{value:+d}%"


def render_streak_summary(streaks: StreakData, *, frequency: float | None = None, weeks: int = 4) -> str:
    lines = [
        f"Current streak: {streaks.current_streak} day{'s' if streaks.current_streak != 1 else ''}",
        f"Longest streak: {streaks.longest_streak} day{'s' if streaks.longest_streak != 1 else ''}",
        f"Completed workouts: {streaks.total_workouts}",
    ]
    if frequency is not None:
        lines.append(f"Workout days per week (last {weeks} weeks): {frequency:.1f}")
    return "\n".join(lines)


def render_all_time(stats: AllTimeStats) -> str:
    avg_rir_text = f"{stats.avg_rir:.1f}" if stats.avg_rir is not None else "n/a"
    return (
        f"Totals: {stats.total_workouts} workouts, {stats.total_sets} sets, "
        f"{stats.total_reps} reps, volume {stats.total_volume}, {stats.total_duration} min.\n"
        f"Averages: {_format_number(stats.avg_duration)} min/workout, "
        f"{_format_number(stats.avg_sets_per_workout)} sets/workout, "
        f"{_format_number(stats.avg_volume_per_workout)} volume/workout, "
        f"{_format_number(stats.avg_reps_per_set)} reps/set, RIR {avg_rir_text}."
    )


def render_period_comparison(comparison: PeriodComparison) -> str:
    """Render the current/previous windows side by side."""
    headers = ("metric", "current", "previous", "change")
    rows = [
        {
            "metric": metric,
            "current": str(getattr(comparison.current, metric)),
            "previous": str(getattr(comparison.previous, metric)),
            "change": _format_change(getattr(comparison.changes, metric)),
        }
        for metric in ("workouts", "sets", "reps", "volume", "duration")
    ]
    title = f"Last {comparison.days} days vs the {comparison.days} days before:"
    return "\n".join([title, _render_table(headers, rows)])


def render_records_table(records: Sequence[PersonalRecord], tz: Optional[tzinfo] = None) -> str:
    headers = ("exercise", "max_weight", "max_reps", "max_volume", "achieved")
    rows = [
        {
            "exercise": record.exercise_name,
            "max_weight": _format_number(record.max_weight),
            "max_reps": str(record.max_reps),
            "max_volume": _format_number(record.max_volume),
            "achieved": record.achieved_at.astimezone(tz).date().isoformat() if record.achieved_at else "n/a",
        }
        for record in records
    ]
    return _render_table(headers, rows)


def render_muscle_table(groups: Sequence[MuscleGroupStat]) -> str:
    headers = ("muscle_group", "volume", "sets", "reps", "share")
    rows = [
        {
            "muscle_group": group.muscle_group,
            "volume": str(group.volume),
            "sets": str(group.sets),
            "reps": str(group.reps),
            "share": f"{group.percentage}%",
        }
        for group in groups
    ]
    return _render_table(headers, rows)


def render_trend(points: Sequence[StrengthTrendPoint]) -> str:
    if not points:
        return "No scored workouts yet."
    return ", ".join(f"#{point.workout_number} {point.date}: {_format_number(point.strength_score)}" for point in points)


def render_statistics(stats: ComputedStatistics, tz: Optional[tzinfo] = None) -> str:
    """Plain-text rendering of the full bundle for the CLI."""
    sections = [
        render_all_time(stats.all_time),
        render_period_comparison(stats.period_comparison),
        "Personal records:\n" + (render_records_table(stats.personal_records, tz) if stats.personal_records else "none"),
        "Muscle groups:\n" + (render_muscle_table(stats.muscle_groups) if stats.muscle_groups else "none"),
        "Strength trend: " + render_trend(stats.strength_trend),
    ]
    return "\n\n".join(sections)


def build_export_dataframe(
    sessions: Iterable[SessionInput],
    tz: Optional[tzinfo] = None,
) -> pd.DataFrame:
    """Prepare the per-set table for CSV export."""
    df_sets = sessions_to_dataframe(sessions, tz)
    if df_sets.empty:
        return df_sets

    export_df = df_sets.copy()
    export_df["date"] = export_df["date"].dt.date
    export_df["volume"] = export_df["volume"].astype(float).round(1)
    return export_df


def generate_plots(
    stats: ComputedStatistics,
    *,
    output_dir: Path,
) -> list[Path]:
    """Create the strength trend line chart and the muscle-group volume bar chart."""

    try:
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:  # pragma: no cover - exercised via CLI
        raise RuntimeError("matplotlib is required to generate plots.") from exc

    if not stats.strength_trend and not stats.muscle_groups:
        raise ValueError("No completed workouts available to plot.")

    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")

    trend_path = _create_trend_plot(stats.strength_trend, output_dir, timestamp, plt)
    muscle_path = _create_muscle_plot(stats.muscle_groups, output_dir, timestamp, plt)
    return [trend_path, muscle_path]


def _create_trend_plot(
    points: Sequence[StrengthTrendPoint],
    output_dir: Path,
    timestamp: str,
    plt: Any,
) -> Path:
    labels = [point.date for point in points]
    scores = [point.strength_score for point in points]

    line_path = output_dir / f"strength_trend_{timestamp}.png"
    fig, ax = plt.subplots()
    ax.plot(labels, scores, marker="o", linewidth=2, label="Strength score")
    ax.set_title("Strength Score Trend")
    ax.set_xlabel("Workout")
    ax.set_ylabel("Strength Score")
    if labels:
        ax.legend()
    fig.autofmt_xdate()
    fig.tight_layout()
    fig.savefig(line_path, dpi=150)
    plt.close(fig)
    return line_path


def _create_muscle_plot(
    groups: Sequence[MuscleGroupStat],
    output_dir: Path,
    timestamp: str,
    plt: Any,
) -> Path:
    labels = [group.muscle_group for group in groups]
    volumes = [group.volume for group in groups]

    bar_path = output_dir / f"muscle_groups_{timestamp}.png"
    fig, ax = plt.subplots()
    ax.bar(labels, volumes, color="#4C72B0")
    ax.set_title("Volume by Muscle Group")
    ax.set_xlabel("Muscle Group")
    ax.set_ylabel("Volume")
    if labels:
        plt.setp(ax.get_xticklabels(), rotation=45, ha="right")
    fig.tight_layout()
    fig.savefig(bar_path, dpi=150)
    plt.close(fig)
    return bar_path

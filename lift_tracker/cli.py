from __future__ import annotations

import json
import logging
import platform
from datetime import datetime, timezone, tzinfo
from importlib import metadata
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from .config import as_dict as config_as_dict, get_config, resolve_timezone
from .env import get_env
from .metrics import compute_weekly_volume, sessions_to_dataframe
from .models import ValidationError, WorkoutSession, parse_timestamp
from .muscles import ExerciseMuscleMap, load_muscle_map
from .services import (
    build_export_dataframe,
    generate_plots,
    render_statistics,
    render_streak_summary,
)
from .statistics import ComputedStatistics, compute_all_statistics
from .storage import load_sessions
from .streaks import calculate_streaks, resolve_now, weekly_frequency, workout_dates_for_month

app = typer.Typer(help="Streaks and training statistics from logged workout sessions.")

SESSIONS_FILE_OPTION = typer.Option(
    None,
    "--sessions-file",
    "-s",
    help="JSON file of sessions with nested exercises and sets (defaults to the data dir).",
)
NOW_OPTION = typer.Option(
    None,
    "--now",
    help="Pin the clock to an ISO-8601 timestamp instead of the current time.",
)
TZ_OPTION = typer.Option(
    None,
    "--tz",
    help="IANA timezone for local calendar days (defaults to config, then system local).",
)
VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log loading and computation details to stderr.",
)


def _fail(message: str, *, code: int = 1) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _load(sessions_file: Optional[Path]) -> list[WorkoutSession]:
    try:
        return load_sessions(sessions_file)
    except ValueError as exc:
        _fail(str(exc))


def _resolve_clock(now: Optional[str]) -> Optional[datetime]:
    if not now:
        return None
    try:
        return parse_timestamp(now, field="--now")
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--now") from exc


def _resolve_zone(tz: Optional[str]) -> Optional[tzinfo]:
    try:
        return resolve_timezone(tz) if tz else get_config().zone()
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--tz") from exc


def _resolve_muscle_map(templates: Optional[Path]) -> ExerciseMuscleMap:
    try:
        return load_muscle_map(templates)
    except (FileNotFoundError, ValueError) as exc:
        _fail(str(exc))


def _compute(
    sessions: list[WorkoutSession],
    *,
    templates: Optional[Path],
    clock: Optional[datetime],
    zone: Optional[tzinfo],
) -> ComputedStatistics:
    settings = get_config().statistics
    return compute_all_statistics(
        sessions,
        muscle_map=_resolve_muscle_map(templates),
        now=clock,
        tz=zone,
        period_days=settings.period_days,
        record_limit=settings.personal_record_limit,
        trend_limit=settings.strength_trend_limit,
    )


@app.command()
def streaks(
    sessions_file: Optional[Path] = SESSIONS_FILE_OPTION,
    now: Optional[str] = NOW_OPTION,
    tz: Optional[str] = TZ_OPTION,
    weeks: Optional[int] = typer.Option(
        None,
        "--weeks",
        "-w",
        min=1,
        help="Trailing weeks used for the weekly frequency (defaults to config).",
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Show the current and longest workout streaks.
    """
    _configure_logging(verbose)
    clock = _resolve_clock(now)
    zone = _resolve_zone(tz)
    sessions = _load(sessions_file)

    frequency_weeks = weeks or get_config().frequency_weeks
    data = calculate_streaks(sessions, now=clock, tz=zone)
    frequency = weekly_frequency(sessions, frequency_weeks, now=clock, tz=zone)
    typer.echo(render_streak_summary(data, frequency=frequency, weeks=frequency_weeks))


@app.command()
def calendar(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Calendar year (defaults to now)."),
    month: Optional[int] = typer.Option(
        None,
        "--month",
        "-m",
        min=1,
        max=12,
        help="Calendar month 1-12 (defaults to now).",
    ),
    sessions_file: Optional[Path] = SESSIONS_FILE_OPTION,
    now: Optional[str] = NOW_OPTION,
    tz: Optional[str] = TZ_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    List the local days with at least one completed workout in a month.
    """
    _configure_logging(verbose)
    zone = _resolve_zone(tz)
    local_now = resolve_now(_resolve_clock(now)).astimezone(zone)
    target_year = year or local_now.year
    target_month = month or local_now.month

    days = workout_dates_for_month(target_year, target_month, _load(sessions_file), tz=zone)
    if not days:
        typer.echo(f"No workouts in {target_year:04d}-{target_month:02d}.")
        raise typer.Exit(code=0)
    typer.echo(f"{len(days)} workout day{'s' if len(days) != 1 else ''} in {target_year:04d}-{target_month:02d}:")
    for day in days:
        typer.echo(f" • {day}")


@app.command()
def stats(
    sessions_file: Optional[Path] = SESSIONS_FILE_OPTION,
    templates: Optional[Path] = typer.Option(
        None,
        "--templates",
        help="Exercise templates JSON used for the muscle-group breakdown.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the statistics bundle as JSON."),
    now: Optional[str] = NOW_OPTION,
    tz: Optional[str] = TZ_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Show all-time totals, period comparison, records, muscle groups and trend.
    """
    _configure_logging(verbose)
    clock = _resolve_clock(now)
    zone = _resolve_zone(tz)
    bundle = _compute(_load(sessions_file), templates=templates, clock=clock, zone=zone)

    if as_json:
        typer.echo(json.dumps(bundle.to_dict(), indent=2))
        return
    typer.echo(render_statistics(bundle, zone))


@app.command()
def weekly(
    sessions_file: Optional[Path] = SESSIONS_FILE_OPTION,
    tz: Optional[str] = TZ_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Summarise workouts, sets, reps and volume per ISO week.
    """
    _configure_logging(verbose)
    zone = _resolve_zone(tz)
    weekly_df = compute_weekly_volume(sessions_to_dataframe(_load(sessions_file), zone))
    if weekly_df.empty:
        typer.echo("No completed sets logged yet.")
        raise typer.Exit(code=0)

    display = weekly_df.copy()
    display["start_date"] = display["start_date"].dt.date
    display["end_date"] = display["end_date"].dt.date
    typer.echo(display.to_string(index=False))


@app.command()
def export(
    to: Path = typer.Option(
        Path("exports"),
        "--to",
        help="Directory (or file stem) receiving the CSV and JSON exports.",
    ),
    sessions_file: Optional[Path] = SESSIONS_FILE_OPTION,
    templates: Optional[Path] = typer.Option(
        None,
        "--templates",
        help="Exercise templates JSON used for the muscle-group breakdown.",
    ),
    now: Optional[str] = NOW_OPTION,
    tz: Optional[str] = TZ_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Export the per-set log as CSV plus the statistics bundle and metadata as JSON.
    """
    _configure_logging(verbose)
    clock = _resolve_clock(now)
    zone = _resolve_zone(tz)
    sessions = _load(sessions_file)

    df = build_export_dataframe(sessions, zone)
    if df.empty:
        typer.echo("No completed sets available for export.")
        raise typer.Exit(code=0)

    bundle = _compute(sessions, templates=templates, clock=clock, zone=zone)
    generated_at = datetime.now(timezone.utc).isoformat()
    paths = _resolve_export_paths(to)
    paths["csv"].parent.mkdir(parents=True, exist_ok=True)

    df.to_csv(paths["csv"], index=False)
    paths["json"].write_text(json.dumps(bundle.to_dict(), indent=2) + "\n", encoding="utf-8")
    metadata_payload = _build_export_metadata(
        row_count=len(df),
        columns=list(df.columns),
        generated_at=generated_at,
        version=_app_version(),
    )
    paths["metadata"].write_text(json.dumps(metadata_payload, indent=2) + "\n", encoding="utf-8")

    typer.echo(f"Exported {len(df)} sets to:")
    typer.echo(f" • CSV: {paths['csv']}")
    typer.echo(f" • Statistics: {paths['json']}")
    typer.echo(f" • Metadata: {paths['metadata']}")


@app.command()
def plot(
    output_dir: Path = typer.Option(
        Path("plots"),
        "--output-dir",
        "-o",
        help="Directory receiving the PNG charts.",
    ),
    sessions_file: Optional[Path] = SESSIONS_FILE_OPTION,
    templates: Optional[Path] = typer.Option(
        None,
        "--templates",
        help="Exercise templates JSON used for the muscle-group breakdown.",
    ),
    now: Optional[str] = NOW_OPTION,
    tz: Optional[str] = TZ_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Save the strength trend and muscle-group charts as PNG files.
    """
    _configure_logging(verbose)
    clock = _resolve_clock(now)
    zone = _resolve_zone(tz)
    bundle = _compute(_load(sessions_file), templates=templates, clock=clock, zone=zone)

    try:
        paths = generate_plots(bundle, output_dir=output_dir)
    except (RuntimeError, ValueError) as exc:
        _fail(str(exc))
    for path in paths:
        typer.echo(f"Saved plot to {path}")


@app.command("config")
def config_show() -> None:
    """
    Show the effective configuration.
    """
    config = config_as_dict()
    typer.echo(f"Config source: {config.get('source')}")
    typer.echo(json.dumps({key: value for key, value in config.items() if key != "source"}, indent=2))


def _resolve_export_paths(target: Path) -> dict[str, Path]:
    target = target.expanduser()
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")

    if target.suffix:
        directory = target.parent
        stem = target.stem
    else:
        directory = target
        stem = f"workouts_{timestamp}"

    return {
        "csv": directory / f"{stem}.csv",
        "json": directory / f"{stem}_statistics.json",
        "metadata": directory / f"{stem}_metadata.json",
    }


def _app_version() -> str:
    try:
        return metadata.version("lift-tracker")
    except metadata.PackageNotFoundError:  # pragma: no cover - local dev fallback
        return "0.0.0"


def _build_export_metadata(
    *,
    row_count: int,
    columns: list[str],
    generated_at: str,
    version: str,
) -> dict[str, Any]:
    return {
        "application": "lift-tracker",
        "version": version,
        "generated_at": generated_at,
        "rows": row_count,
        "columns": columns,
        "data_formats": ["csv", "json"],
        "environment": {
            "python_version": platform.python_version(),
            "lift_tracker_data_dir": get_env("DATA_DIR"),
            "lift_tracker_sessions_file": get_env("SESSIONS_FILE"),
        },
    }

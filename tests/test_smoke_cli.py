from __future__ import annotations

import json

from typer.testing import CliRunner

from lift_tracker.cli import app
from lift_tracker.config import get_config


def _write_sessions(path) -> None:
    sessions = []
    for day, weight in ((4, 100), (5, 60), (6, 105)):
        sessions.append(
            {
                "id": f"s-{day}",
                "user_id": "user-1",
                "started_at": f"2024-03-{day:02d}T11:00:00Z",
                "ended_at": f"2024-03-{day:02d}T12:00:00Z",
                "total_duration_sec": 3600,
                "strength_score": weight * 5,
                "workout_exercises": [
                    {
                        "id": f"e-{day}",
                        "name": "Deadlift" if day != 5 else "Barbell Bench Press",
                        "workout_sets": [{"reps": 5, "weight": weight, "rir": 1}],
                    }
                ],
            }
        )
    sessions.append({"id": "open", "started_at": "2024-03-06T13:00:00Z", "ended_at": None})
    path.write_text(json.dumps(sessions), encoding="utf-8")


def test_cli_smoke(tmp_path, monkeypatch):
    runner = CliRunner()
    sessions_path = tmp_path / "sessions.json"
    _write_sessions(sessions_path)
    monkeypatch.setenv("LIFT_TRACKER_SESSIONS_FILE", str(sessions_path))
    now = "2024-03-06T12:30:00Z"

    streaks_result = runner.invoke(app, ["streaks", "--now", now])
    assert streaks_result.exit_code == 0, streaks_result.stdout
    assert "Current streak: 3 days" in streaks_result.stdout
    assert "Completed workouts: 3" in streaks_result.stdout

    calendar_result = runner.invoke(app, ["calendar", "--year", "2024", "--month", "3"])
    assert calendar_result.exit_code == 0, calendar_result.stdout
    assert "3 workout days in 2024-03:" in calendar_result.stdout
    assert " • 2024-03-04" in calendar_result.stdout

    empty_month = runner.invoke(app, ["calendar", "--year", "2024", "--month", "1"])
    assert empty_month.exit_code == 0
    assert "No workouts in 2024-01." in empty_month.stdout

    stats_result = runner.invoke(app, ["stats", "--json", "--now", now])
    assert stats_result.exit_code == 0, stats_result.stdout
    payload = json.loads(stats_result.stdout)
    assert payload["all_time"]["total_workouts"] == 3
    assert payload["all_time"]["total_volume"] == 1325
    assert payload["personal_records"][0]["exercise_name"] == "Deadlift"
    assert payload["personal_records"][0]["max_weight"] == 105
    assert payload["period_comparison"]["changes"]["workouts"] == 100

    text_result = runner.invoke(app, ["stats", "--now", now])
    assert text_result.exit_code == 0, text_result.stdout
    assert "Personal records:" in text_result.stdout

    weekly_result = runner.invoke(app, ["weekly"])
    assert weekly_result.exit_code == 0, weekly_result.stdout
    assert "2024-W10" in weekly_result.stdout

    export_dir = tmp_path / "exports"
    export_result = runner.invoke(app, ["export", "--to", str(export_dir), "--now", now])
    assert export_result.exit_code == 0, export_result.stdout
    assert "Exported 3 sets to:" in export_result.stdout

    assert list(export_dir.glob("*.csv")), "Expected a CSV export"
    statistics_files = list(export_dir.glob("*_statistics.json"))
    metadata_files = list(export_dir.glob("*_metadata.json"))
    assert statistics_files and metadata_files

    metadata_payload = json.loads(metadata_files[0].read_text(encoding="utf-8"))
    assert metadata_payload["application"] == "lift-tracker"
    assert metadata_payload["rows"] == 3
    assert "volume" in metadata_payload["columns"]

    config_result = runner.invoke(app, ["config"])
    assert config_result.exit_code == 0, config_result.stdout
    assert "Config source:" in config_result.stdout
    assert '"frequency_weeks"' in config_result.stdout


def test_cli_plot(tmp_path, monkeypatch):
    monkeypatch.setenv("MPLBACKEND", "Agg")
    sessions_path = tmp_path / "sessions.json"
    _write_sessions(sessions_path)

    result = CliRunner().invoke(
        app,
        ["plot", "--sessions-file", str(sessions_path), "--output-dir", str(tmp_path / "plots"), "--now", "2024-03-06T12:30:00Z"],
    )
    assert result.exit_code == 0, result.stdout
    assert result.stdout.count("Saved plot to") == 2


def test_cli_rejects_bad_input(tmp_path):
    runner = CliRunner()
    broken = tmp_path / "sessions.json"
    broken.write_text("{not json", encoding="utf-8")

    bad_file = runner.invoke(app, ["streaks", "--sessions-file", str(broken)])
    assert bad_file.exit_code == 1

    bad_clock = runner.invoke(app, ["streaks", "--sessions-file", str(broken), "--now", "soon"])
    assert bad_clock.exit_code == 2
    assert isinstance(bad_clock.exception, SystemExit)

    bad_zone = runner.invoke(app, ["stats", "--sessions-file", str(broken), "--tz", "Nowhere/Land"])
    assert bad_zone.exit_code == 2
    assert isinstance(bad_zone.exception, SystemExit)


def test_cli_uses_configured_timezone(tmp_path, monkeypatch):
    sessions_path = tmp_path / "sessions.json"
    sessions_path.write_text(
        json.dumps([{"id": "late", "started_at": "2024-03-06T12:00:00Z", "ended_at": "2024-03-06T13:00:00Z"}]),
        encoding="utf-8",
    )
    monkeypatch.setenv("LIFT_TRACKER_TIMEZONE", "Etc/GMT-12")
    get_config.cache_clear()
    try:
        result = CliRunner().invoke(
            app, ["calendar", "--year", "2024", "--month", "3", "--sessions-file", str(sessions_path)]
        )
        utc_result = CliRunner().invoke(
            app,
            ["calendar", "--year", "2024", "--month", "3", "--sessions-file", str(sessions_path), "--tz", "Etc/UTC"],
        )
    finally:
        get_config.cache_clear()

    assert result.exit_code == 0, result.stdout
    assert " • 2024-03-07" in result.stdout
    assert utc_result.exit_code == 0, utc_result.stdout
    assert " • 2024-03-06" in utc_result.stdout

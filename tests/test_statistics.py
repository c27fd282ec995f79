from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

import pytest

from lift_tracker.muscles import ExerciseMuscleMap
from lift_tracker.statistics import (
    AllTimeStats,
    PeriodChanges,
    compute_all_statistics,
    compute_all_time_stats,
    compute_muscle_group_breakdown,
    compute_period_comparison,
    compute_period_stats,
    compute_personal_records,
    percent_change,
    prepare_strength_trend_data,
    round_half_up,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

SetRow = tuple  # (reps, weight, rir[, completed_at])


def _sets(rows: Iterable[SetRow]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for index, row in enumerate(rows, start=1):
        reps, weight, rir, *rest = row
        payload.append(
            {
                "id": f"set-{index}",
                "set_number": index,
                "reps": reps,
                "weight": weight,
                "rir": rir,
                "completed_at": rest[0] if rest else None,
            }
        )
    return payload


def _session(
    started: str,
    exercises: Sequence[tuple[str, Sequence[SetRow]]] = (),
    *,
    duration: Optional[int] = 3600,
    score: Optional[float] = None,
    completed: bool = True,
) -> dict[str, object]:
    return {
        "id": f"session-{started}",
        "user_id": "user-1",
        "started_at": started,
        "ended_at": started if completed else None,
        "total_duration_sec": duration,
        "strength_score": score,
        "exercises": [
            {"id": f"ex-{index}", "name": name, "sort_order": index, "sets": _sets(rows)}
            for index, (name, rows) in enumerate(exercises)
        ],
    }


@pytest.mark.parametrize(
    ("value", "digits", "expected"),
    [
        (2.5, 0, 3.0),
        (-2.5, 0, -2.0),
        (0.25, 1, 0.3),
        (23 / 3, 1, 7.7),
        (4.0, 1, 4.0),
    ],
)
def test_round_half_up(value: float, digits: int, expected: float) -> None:
    assert round_half_up(value, digits) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("current", "previous", "expected"),
    [
        (500, 0, 100),
        (0, 0, 0),
        (150, 100, 50),
        (50, 100, -50),
        (1, 3, -67),
        (0, 40, -100),
    ],
)
def test_percent_change(current: float, previous: float, expected: int) -> None:
    assert percent_change(current, previous) == expected


def test_empty_history_yields_zeroed_statistics() -> None:
    assert compute_all_time_stats([]) == AllTimeStats()
    assert compute_all_time_stats([]).avg_rir is None
    assert compute_personal_records([]) == []
    assert compute_muscle_group_breakdown([], ExerciseMuscleMap.builtin()) == []
    assert prepare_strength_trend_data([]) == []

    comparison = compute_period_comparison([], now=NOW)
    assert comparison.current.workouts == 0
    assert comparison.changes == PeriodChanges()


def test_single_set_round_trip() -> None:
    sessions = [_session("2024-01-01", [("Bench Press", [(5, 100, None)])])]
    bundle = compute_all_statistics(sessions, now=NOW, tz=timezone.utc)

    assert bundle.all_time.total_volume == 500
    assert bundle.all_time.total_workouts == 1
    record = bundle.personal_records[0]
    assert record.exercise_name == "Bench Press"
    assert record.max_weight == pytest.approx(100)
    assert record.max_reps == 5
    assert record.max_volume == pytest.approx(500)


def test_single_set_volume_reaches_totals_and_records() -> None:
    sessions = [_session("2024-03-01T10:00:00Z", [("Barbell Curl", [(10, 50, None)])])]
    assert compute_all_time_stats(sessions).total_volume == 500
    assert compute_personal_records(sessions)[0].max_volume == pytest.approx(500)


def test_open_sessions_are_excluded_everywhere() -> None:
    open_session = _session(
        "2024-03-08T10:00:00Z", [("Deadlift", [(5, 200, 1)])], score=1000, completed=False
    )
    bundle = compute_all_statistics([open_session], now=NOW, tz=timezone.utc)

    assert bundle.all_time == AllTimeStats()
    assert bundle.period_comparison.current.workouts == 0
    assert bundle.personal_records == []
    assert bundle.muscle_groups == []
    assert bundle.strength_trend == []


def test_all_time_totals_and_averages() -> None:
    sessions = [
        _session("2024-03-01T10:00:00Z", [("Bench Press", [(10, 50, 2), (8, 60, None)])], duration=3600),
        _session("2024-03-02T10:00:00Z", [("Pull-Up", [(5, None, 0)])], duration=1800),
        _session("2024-03-03T10:00:00Z", [("Deadlift", [(5, 200, 1)])], completed=False),
    ]
    stats = compute_all_time_stats(sessions)

    assert stats.total_workouts == 2
    assert stats.total_sets == 3
    assert stats.total_reps == 23
    assert stats.total_volume == 980
    assert stats.total_duration == 90
    assert stats.avg_duration == pytest.approx(45.0)
    assert stats.avg_sets_per_workout == pytest.approx(1.5)
    assert stats.avg_volume_per_workout == pytest.approx(490.0)
    assert stats.avg_reps_per_set == pytest.approx(7.7)
    assert stats.avg_rir == pytest.approx(1.0)


def test_missing_duration_counts_as_zero() -> None:
    sessions = [_session("2024-03-01T10:00:00Z", [("Bench Press", [(10, 50, None)])], duration=None)]
    stats = compute_all_time_stats(sessions)
    assert stats.total_duration == 0
    assert stats.avg_rir is None


def test_period_comparison_against_previous_window() -> None:
    sessions = [
        _session("2024-03-05T10:00:00Z", [("Bench Press", [(10, 50, None)])]),
        _session("2024-02-27T10:00:00Z", [("Bench Press", [(5, 50, None)])]),
    ]
    comparison = compute_period_comparison(sessions, 7, now=NOW)

    assert comparison.days == 7
    assert comparison.as_of == NOW
    assert comparison.current.volume == 500
    assert comparison.previous.volume == 250
    assert comparison.changes.volume == 100
    assert comparison.changes.reps == 100
    assert comparison.changes.workouts == 0
    assert comparison.changes.duration == 0


def test_period_comparison_growth_from_nothing_is_100() -> None:
    sessions = [_session("2024-03-05T10:00:00Z", [("Bench Press", [(10, 50, None)])])]
    changes = compute_period_comparison(sessions, now=NOW).changes
    assert changes == PeriodChanges(workouts=100, sets=100, reps=100, volume=100, duration=100)


@pytest.mark.parametrize(
    ("started", "bucket"),
    [
        ("2024-03-10T12:00:00Z", None),
        ("2024-03-10T11:59:59Z", "current"),
        ("2024-03-03T12:00:00Z", "current"),
        ("2024-03-03T11:59:59Z", "previous"),
        ("2024-02-25T12:00:00Z", "previous"),
        ("2024-02-25T11:59:59Z", None),
    ],
)
def test_period_windows_are_half_open(started: str, bucket: Optional[str]) -> None:
    comparison = compute_period_comparison([_session(started, [("Bench Press", [(1, 10, None)])])], now=NOW)
    assert comparison.current.workouts == (1 if bucket == "current" else 0)
    assert comparison.previous.workouts == (1 if bucket == "previous" else 0)


def test_period_stats_use_the_start_time() -> None:
    session = _session("2024-03-03T11:00:00Z", [("Bench Press", [(1, 10, None)])])
    session["ended_at"] = "2024-03-03T13:00:00Z"
    start = datetime(2024, 3, 3, 12, tzinfo=timezone.utc)
    assert compute_period_stats([session], start, NOW).workouts == 0


def test_personal_record_maxima_are_independent() -> None:
    sessions = [
        _session(
            "2024-03-01T10:00:00Z",
            [
                (
                    "Bench Press",
                    [
                        (5, 100, None, "2024-03-01T10:05:00Z"),
                        (12, 60, None, "2024-03-01T10:10:00Z"),
                        (2, 110, None, "2024-03-01T10:15:00Z"),
                    ],
                )
            ],
        )
    ]
    (record,) = compute_personal_records(sessions)

    assert record.max_weight == pytest.approx(110)
    assert record.max_reps == 12
    assert record.max_volume == pytest.approx(720)
    assert record.achieved_at == datetime(2024, 3, 1, 10, 10, tzinfo=timezone.utc)


def test_personal_record_tie_keeps_first_max_volume_set() -> None:
    sessions = [
        _session(
            "2024-03-01T10:00:00Z",
            [
                (
                    "Back Squat",
                    [
                        (5, 100, None, "2024-03-01T10:05:00Z"),
                        (10, 50, None, "2024-03-01T10:10:00Z"),
                    ],
                )
            ],
        )
    ]
    (record,) = compute_personal_records(sessions)

    assert record.max_volume == pytest.approx(500)
    assert record.achieved_at == datetime(2024, 3, 1, 10, 5, tzinfo=timezone.utc)


def test_personal_records_sorted_by_volume_and_limited() -> None:
    sessions = [
        _session(
            "2024-03-01T10:00:00Z",
            [
                ("Barbell Curl", [(10, 20, None)]),
                ("Back Squat", [(5, 150, None)]),
                ("Bench Press", [(12, 60, None)]),
                ("bench press", [(1, 10, None)]),
            ],
        )
    ]
    records = compute_personal_records(sessions, limit=2)
    assert [record.exercise_name for record in records] == ["Back Squat", "Bench Press"]

    names = {record.exercise_name for record in compute_personal_records(sessions)}
    assert {"Bench Press", "bench press"} <= names


def test_bodyweight_records_have_zero_weight() -> None:
    sessions = [_session("2024-03-01T10:00:00Z", [("Pull-Up", [(10, None, None)])])]
    (record,) = compute_personal_records(sessions)
    assert record.max_weight == 0
    assert record.max_volume == 0
    assert record.max_reps == 10


def test_muscle_breakdown_counts_every_primary_group() -> None:
    muscle_map = ExerciseMuscleMap({"Deadlift": ["Back", "Hamstrings"], "Bench Press": ["Chest"]})
    sessions = [
        _session(
            "2024-03-01T10:00:00Z",
            [("DEADLIFT", [(5, 100, None)]), ("Bench Press", [(10, 50, None)])],
        )
    ]
    breakdown = compute_muscle_group_breakdown(sessions, muscle_map)
    by_group = {stat.muscle_group: stat for stat in breakdown}

    assert set(by_group) == {"Back", "Hamstrings", "Chest"}
    assert by_group["Back"].volume == 500
    assert by_group["Back"].sets == 1
    assert by_group["Chest"].reps == 10
    assert [stat.percentage for stat in breakdown] == [50, 50, 50]
    assert sum(stat.percentage for stat in breakdown) > 100


def test_muscle_breakdown_unknown_exercise_goes_to_other() -> None:
    sessions = [
        _session(
            "2024-03-01T10:00:00Z",
            [("Mystery Move", [(10, 10, None)]), ("Barbell Bench Press", [(10, 30, None)])],
        )
    ]
    breakdown = compute_muscle_group_breakdown(sessions, ExerciseMuscleMap.builtin())
    assert [(stat.muscle_group, stat.percentage) for stat in breakdown] == [("Chest", 75), ("Other", 25)]


def test_muscle_breakdown_without_volume_reports_zero_percent() -> None:
    sessions = [_session("2024-03-01T10:00:00Z", [("Pull-Up", [(8, None, None)])])]
    (stat,) = compute_muscle_group_breakdown(sessions, ExerciseMuscleMap.builtin())
    assert stat.muscle_group == "Back"
    assert stat.reps == 8
    assert stat.percentage == 0


def test_strength_trend_keeps_latest_scored_sessions_in_order() -> None:
    sessions = [
        _session("2024-03-01T12:00:00Z", score=100),
        _session("2024-02-20T12:00:00Z", score=80),
        _session("2024-03-03T12:00:00Z", score=None),
        _session("2024-03-05T12:00:00Z", score=120.5),
        _session("2024-03-06T12:00:00Z", score=200, completed=False),
    ]
    points = prepare_strength_trend_data(sessions, limit=2, tz=timezone.utc)

    assert [(point.date, point.strength_score, point.workout_number) for point in points] == [
        ("Mar 1", 100.0, 1),
        ("Mar 5", 120.5, 2),
    ]
    assert len(prepare_strength_trend_data(sessions, tz=timezone.utc)) == 3


def test_bundle_is_json_serialisable() -> None:
    sessions = [
        _session(
            "2024-03-05T10:00:00Z",
            [("Deadlift", [(5, 100, 2, "2024-03-05T10:20:00Z")])],
            score=500,
        )
    ]
    payload = json.loads(json.dumps(compute_all_statistics(sessions, now=NOW, tz=timezone.utc).to_dict()))

    assert set(payload) == {"all_time", "period_comparison", "personal_records", "muscle_groups", "strength_trend"}
    assert payload["period_comparison"]["as_of"] == NOW.isoformat()
    assert payload["personal_records"][0]["achieved_at"] == "2024-03-05T10:20:00+00:00"
    assert {group["muscle_group"] for group in payload["muscle_groups"]} == {"Back", "Hamstrings", "Glutes"}
    assert all(group["percentage"] == 100 for group in payload["muscle_groups"])


def test_nested_select_keys_match_plain_keys() -> None:
    plain = [_session("2024-03-05T10:00:00Z", [("Bench Press", [(8, 70, 1)])], score=560)]
    nested = [
        {
            **{key: value for key, value in plain[0].items() if key != "exercises"},
            "workout_exercises": [
                {
                    **{key: value for key, value in exercise.items() if key != "sets"},
                    "workout_sets": exercise["sets"],
                }
                for exercise in plain[0]["exercises"]
            ],
        }
    ]
    assert compute_all_statistics(nested, now=NOW, tz=timezone.utc) == compute_all_statistics(
        plain, now=NOW, tz=timezone.utc
    )

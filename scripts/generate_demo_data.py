from __future__ import annotations

import argparse
import json
import random
import uuid
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Iterable

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_JSON = ROOT / "demo" / "demo_sessions.json"
DEFAULT_USER = "demo-user"

ROUTINE_DAYS: dict[str, list[tuple[str, float]]] = {
    "push": [("Barbell Bench Press", 60.0), ("Overhead Press", 35.0), ("Dip", 0.0), ("Triceps Pushdown", 25.0)],
    "pull": [("Deadlift", 100.0), ("Barbell Row", 55.0), ("Pull-Up", 0.0), ("Barbell Curl", 25.0)],
    "legs": [("Back Squat", 80.0), ("Romanian Deadlift", 70.0), ("Leg Press", 140.0), ("Standing Calf Raise", 60.0)],
}


def _build_sets(rng: random.Random, exercise_id: str, base_weight: float, progress: float, finished: datetime) -> list[dict[str, object]]:
    sets: list[dict[str, object]] = []
    for set_number in range(1, rng.randint(3, 4) + 1):
        weight = round(base_weight * progress / 2.5) * 2.5 if base_weight else None
        sets.append(
            {
                "id": str(uuid.UUID(int=rng.getrandbits(128))),
                "workout_exercise_id": exercise_id,
                "set_number": set_number,
                "reps": rng.randint(5, 12),
                "weight": weight,
                "rir": rng.choice([None, 0, 1, 2, 3]),
                "completed_at": (finished - timedelta(minutes=3 * (5 - set_number))).isoformat(),
            }
        )
    return sets


def _build_sessions(days: int, start: date, seed: int, user: str) -> list[dict[str, object]]:
    rng = random.Random(seed)
    sessions: list[dict[str, object]] = []
    rotation = list(ROUTINE_DAYS)

    for offset in range(days):
        if rng.random() < 0.35:
            continue  # rest day
        day = start + timedelta(days=offset)
        started = datetime.combine(day, time(hour=rng.randint(6, 19), minute=rng.choice([0, 15, 30, 45])), tzinfo=timezone.utc)
        duration = rng.randint(40, 85) * 60
        finished = started + timedelta(seconds=duration)
        session_id = str(uuid.UUID(int=rng.getrandbits(128)))
        progress = 1 + 0.005 * offset

        exercises: list[dict[str, object]] = []
        for sort_order, (name, base_weight) in enumerate(ROUTINE_DAYS[rotation[len(sessions) % len(rotation)]]):
            exercise_id = str(uuid.UUID(int=rng.getrandbits(128)))
            exercises.append(
                {
                    "id": exercise_id,
                    "session_id": session_id,
                    "name": name,
                    "sort_order": sort_order,
                    "workout_sets": _build_sets(rng, exercise_id, base_weight, progress, finished),
                }
            )

        strength_score = sum(
            (workout_set["weight"] or 0) * workout_set["reps"]
            for exercise in exercises
            for workout_set in exercise["workout_sets"]
        )
        sessions.append(
            {
                "id": session_id,
                "user_id": user,
                "routine_id": None,
                "routine_day_id": None,
                "started_at": started.isoformat(),
                "ended_at": finished.isoformat(),
                "total_duration_sec": duration,
                "strength_score": round(strength_score, 1),
                "workout_exercises": exercises,
            }
        )
    return sessions


def _write_json(path: Path, sessions: Iterable[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(list(sessions), indent=2) + "\n", encoding="utf-8")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate synthetic workout sessions with nested sets.")
    parser.add_argument("--days", type=int, default=42, help="Number of calendar days to cover.")
    parser.add_argument(
        "--start-date",
        type=date.fromisoformat,
        default=(date.today() - timedelta(days=41)).isoformat(),
        help="Start date (YYYY-MM-DD). Defaults to 41 days before today.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility.")
    parser.add_argument("--json", type=Path, default=DEFAULT_JSON, help="Destination .json file.")
    parser.add_argument("--user", default=DEFAULT_USER, help="User id stamped on every session.")
    args = parser.parse_args()

    if isinstance(args.start_date, str):
        start = date.fromisoformat(args.start_date)
    else:
        start = args.start_date

    sessions = _build_sessions(days=args.days, start=start, seed=args.seed, user=args.user)
    _write_json(args.json, sessions)

    print(f"Wrote {len(sessions)} demo sessions to {args.json}")


if __name__ == "__main__":
    main()

from __future__ import annotations

from datetime import tzinfo
from typing import Iterable, Optional

import pandas as pd

from .models import SessionInput, completed_sessions
from .streaks import to_local_date

SET_COLUMNS = [
    "session_id",
    "date",
    "started_at",
    "exercise",
    "set_number",
    "reps",
    "weight",
    "rir",
    "volume",
]

WEEKLY_COLUMNS = [
    "label",
    "start_date",
    "end_date",
    "workouts",
    "sets",
    "reps",
    "volume",
]


def sessions_to_dataframe(
    sessions: Iterable[SessionInput],
    tz: Optional[tzinfo] = None,
) -> pd.DataFrame:
    """Flatten completed sessions into one row per logged set."""
    records: list[dict[str, object]] = []
    for session in completed_sessions(sessions):
        session_day = pd.to_datetime(to_local_date(session.ended_at, tz))
        for exercise, workout_set in session.iter_sets():
            records.append(
                {
                    "session_id": session.id,
                    "date": session_day,
                    "started_at": session.started_at.isoformat(),
                    "exercise": exercise.name,
                    "set_number": workout_set.set_number,
                    "reps": workout_set.reps or 0,
                    "weight": workout_set.weight if workout_set.weight is not None else pd.NA,
                    "rir": workout_set.rir if workout_set.rir is not None else pd.NA,
                    "volume": workout_set.volume,
                }
            )

    if not records:
        return pd.DataFrame(columns=SET_COLUMNS)

    df = pd.DataFrame(records, columns=SET_COLUMNS)
    df.sort_values(["date", "session_id", "set_number"], inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)
    return df


def compute_weekly_volume(df_sets: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate the set-level frame into ISO weeks (``YYYY-Www``).

    Sessions without any logged set never reach the set frame, so they do not
    count toward `workouts` here.
    """
    if df_sets.empty:
        return pd.DataFrame(columns=WEEKLY_COLUMNS)

    iso = df_sets["date"].dt.isocalendar()
    labelled = df_sets.assign(
        label=iso.year.astype(str) + "-W" + iso.week.map(lambda value: f"{int(value):02d}"),
    )
    weekly = (
        labelled.groupby("label")
        .agg(
            start_date=("date", "min"),
            end_date=("date", "max"),
            workouts=("session_id", "nunique"),
            sets=("set_number", "count"),
            reps=("reps", "sum"),
            volume=("volume", "sum"),
        )
        .reset_index()
        .sort_values("start_date")
        .reset_index(drop=True)
    )
    weekly["volume"] = weekly["volume"].astype(float).round(1)
    return weekly[WEEKLY_COLUMNS]

"""
Workout streaks on the observer's local calendar day.

Every workout day is keyed by the local ``YYYY-MM-DD`` date of the session's
``ended_at``. The current streak stays alive while today or yesterday holds a
workout, so a user who has not trained yet today keeps yesterday's streak.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional, Set, Union

from .models import SessionInput, completed_sessions, ensure_aware, parse_timestamp

DateKey = str
DateLike = Union[DateKey, date]

__all__ = [
    "StreakData",
    "resolve_now",
    "to_local_date",
    "workout_days",
    "calculate_streaks",
    "workout_dates_for_month",
    "weekly_frequency",
    "has_workout_on_date",
    "workout_count_for_date",
]


@dataclass(frozen=True)
class StreakData:
    current_streak: int = 0
    longest_streak: int = 0
    total_workouts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return the injected clock reading, or the current instant."""
    if now is None:
        return datetime.now().astimezone()
    return ensure_aware(now)


def to_local_date(timestamp: Union[datetime, str], tz: Optional[tzinfo] = None) -> DateKey:
    """
    Convert an absolute timestamp to a ``YYYY-MM-DD`` key in the local zone.

    The key is built from the local year/month/day, so two sessions finishing
    on the same local day share a key even when their UTC dates differ.
    """
    moment = parse_timestamp(timestamp, field="timestamp")
    local = moment.astimezone(tz)
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}"


def workout_days(sessions: Iterable[SessionInput], tz: Optional[tzinfo] = None) -> Set[DateKey]:
    """Distinct local days on which at least one session ended."""
    return {to_local_date(session.ended_at, tz) for session in completed_sessions(sessions)}


def calculate_streaks(
    sessions: Iterable[SessionInput],
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> StreakData:
    """Current streak, longest streak and completed-session count."""
    completed = completed_sessions(sessions)
    days = workout_days(completed, tz)
    if not days:
        return StreakData()

    today = date.fromisoformat(to_local_date(resolve_now(now), tz))
    current = _current_streak(days, today)
    longest = _longest_run(days)
    return StreakData(
        current_streak=current,
        longest_streak=max(longest, current),
        total_workouts=len(completed),
    )


def workout_dates_for_month(
    year: int,
    month: int,
    sessions: Iterable[SessionInput],
    *,
    tz: Optional[tzinfo] = None,
) -> List[DateKey]:
    """Workout days within a calendar month (``month`` is 1-12), ascending."""
    prefix = f"{year:04d}-{month:02d}-"
    return sorted(day for day in workout_days(sessions, tz) if day.startswith(prefix))


def weekly_frequency(
    sessions: Iterable[SessionInput],
    weeks: int = 4,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> float:
    """Average workout days per week over the trailing ``weeks * 7`` days."""
    if weeks <= 0:
        return 0.0
    cutoff = to_local_date(resolve_now(now) - timedelta(days=weeks * 7), tz)
    recent = [day for day in workout_days(sessions, tz) if day >= cutoff]
    return len(recent) / weeks


def has_workout_on_date(day: DateLike, sessions: Iterable[SessionInput], *, tz: Optional[tzinfo] = None) -> bool:
    return _as_key(day) in workout_days(sessions, tz)


def workout_count_for_date(
    day: DateLike,
    sessions: Iterable[SessionInput],
    *,
    tz: Optional[tzinfo] = None,
) -> int:
    """Number of sessions (not days) that ended on the given local day."""
    key = _as_key(day)
    return sum(1 for session in completed_sessions(sessions) if to_local_date(session.ended_at, tz) == key)


def _current_streak(days: Set[DateKey], today: date) -> int:
    yesterday = today - timedelta(days=1)
    if today.isoformat() in days:
        cursor = today
    elif yesterday.isoformat() in days:
        cursor = yesterday
    else:
        return 0

    streak = 0
    while cursor.isoformat() in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _longest_run(days: Set[DateKey]) -> int:
    longest = 0
    run = 0
    previous: Optional[date] = None
    for day in sorted(date.fromisoformat(key) for key in days):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def _as_key(day: DateLike) -> DateKey:
    if isinstance(day, datetime):
        return day.date().isoformat()
    if isinstance(day, date):
        return day.isoformat()
    return str(day).strip()

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Optional, Union

_FRACTION_RE = re.compile(r"(\.\d{1,6})(?=[+-]\d{2}:?\d{2}$|$)")

__all__ = [
    "ValidationError",
    "ensure_aware",
    "parse_timestamp",
    "coerce_number",
    "calculate_set_volume",
    "WorkoutSet",
    "WorkoutExercise",
    "WorkoutSession",
    "SessionInput",
    "coerce_session",
    "parse_sessions",
    "completed_sessions",
]


class ValidationError(ValueError):
    """Raised when fetched workout data cannot be normalised safely."""


def ensure_aware(value: datetime) -> datetime:
    """Attach the local zone to naive datetimes, leaving aware ones untouched."""
    if value.tzinfo is not None and value.utcoffset() is not None:
        return value
    return value.astimezone()


def parse_timestamp(value: Any, *, field: str = "timestamp", allow_empty: bool = False) -> Optional[datetime]:
    """
    Parse storage timestamps into timezone-aware datetimes.

    Accepts `datetime.datetime`, `datetime.date` (local midnight) or ISO-8601
    strings, including the trailing ``Z`` emitted by most databases. Naive
    values are read as local wall time.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if allow_empty:
            return None
        raise ValidationError(f"{field} is required.")

    if isinstance(value, datetime):
        return ensure_aware(value)

    if isinstance(value, date):
        return ensure_aware(datetime.combine(value, time()))

    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 timestamp; received {value!r}.")

    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    # Trimmed fractions such as ".12345" only parse on newer interpreters.
    candidate = _FRACTION_RE.sub(lambda match: match.group(1).ljust(7, "0"), candidate, count=1)
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be an ISO-8601 timestamp; received {value!r}."
        ) from exc
    return ensure_aware(parsed)


def coerce_number(
    value: Any,
    *,
    field: str = "value",
    allow_float: bool = True,
) -> Optional[float]:
    """
    Convert arbitrary input into a float, mapping null/blank values to None.

    When `allow_float` is False, the coerced number must be whole.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            number = float(stripped)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a number; received {value!r}.") from exc
    else:
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if not allow_float and number != round(number):
        raise ValidationError(f"{field} must be an integer; received {value!r}.")

    return number


def calculate_set_volume(weight: Optional[float], reps: Optional[int]) -> float:
    """Volume of a single set (weight x reps); missing values count as zero."""
    return float(weight or 0) * float(reps or 0)


@dataclass(frozen=True)
class WorkoutSet:
    """One logged set."""

    id: str
    exercise_id: str
    set_number: int
    reps: int = 0
    weight: Optional[float] = None
    rir: Optional[int] = None
    completed_at: Optional[datetime] = None

    @property
    def volume(self) -> float:
        return calculate_set_volume(self.weight, self.reps)


@dataclass(frozen=True)
class WorkoutExercise:
    """An exercise performed inside a session, with its sets."""

    id: str
    session_id: str
    name: str
    sort_order: int = 0
    sets: tuple[WorkoutSet, ...] = ()


@dataclass(frozen=True)
class WorkoutSession:
    """
    A workout session with its exercises and sets already attached.

    A session counts as completed once `ended_at` is set; open sessions are
    ignored by every streak and statistics computation.
    """

    id: str
    user_id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    routine_id: Optional[str] = None
    routine_day_id: Optional[str] = None
    total_duration_sec: Optional[int] = None
    strength_score: Optional[float] = None
    exercises: tuple[WorkoutExercise, ...] = field(default_factory=tuple)

    @property
    def is_completed(self) -> bool:
        return self.ended_at is not None

    def iter_sets(self) -> Iterable[tuple[WorkoutExercise, WorkoutSet]]:
        for exercise in self.exercises:
            for workout_set in exercise.sets:
                yield exercise, workout_set


SessionInput = Union[Mapping[str, Any], WorkoutSession]


def coerce_session(item: SessionInput) -> WorkoutSession:
    """
    Convert a fetched row (or an existing session) into a `WorkoutSession`.

    Children are read from ``exercises``/``sets`` or from the nested-select
    keys ``workout_exercises``/``workout_sets``; missing arrays become empty.
    """
    if isinstance(item, WorkoutSession):
        return item
    if not isinstance(item, Mapping):
        raise TypeError(f"Unsupported session type: {type(item)!r}")

    session_id = _optional_id(item.get("id"))
    exercises_raw = _children(item, "exercises", "workout_exercises", field="exercises")
    return WorkoutSession(
        id=session_id,
        user_id=_optional_id(item.get("user_id")),
        started_at=parse_timestamp(item.get("started_at"), field="started_at"),
        ended_at=parse_timestamp(item.get("ended_at"), field="ended_at", allow_empty=True),
        routine_id=_optional_id(item.get("routine_id")) or None,
        routine_day_id=_optional_id(item.get("routine_day_id")) or None,
        total_duration_sec=_optional_int(item.get("total_duration_sec"), field="total_duration_sec"),
        strength_score=coerce_number(item.get("strength_score"), field="strength_score"),
        exercises=tuple(
            _coerce_exercise(raw, session_id=session_id, index=index)
            for index, raw in enumerate(exercises_raw)
        ),
    )


def parse_sessions(payload: Iterable[SessionInput]) -> list[WorkoutSession]:
    """Normalise a list of fetched rows into sessions."""
    return [coerce_session(item) for item in payload]


def completed_sessions(sessions: Iterable[SessionInput] | None) -> list[WorkoutSession]:
    """Sessions that have ended, in input order; open sessions are dropped."""
    normalised = (coerce_session(item) for item in (sessions or ()))
    return [session for session in normalised if session.is_completed]


def _coerce_exercise(raw: Any, *, session_id: str, index: int) -> WorkoutExercise:
    if isinstance(raw, WorkoutExercise):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(f"exercises[{index}] must be an object; received {raw!r}.")

    exercise_id = _optional_id(raw.get("id"))
    sets_raw = _children(raw, "sets", "workout_sets", field=f"exercises[{index}].sets")
    sort_order = _optional_int(raw.get("sort_order"), field="sort_order")
    return WorkoutExercise(
        id=exercise_id,
        session_id=_optional_id(raw.get("session_id")) or session_id,
        name=str(raw.get("name") or ""),
        sort_order=sort_order if sort_order is not None else index,
        sets=tuple(
            _coerce_set(set_raw, exercise_id=exercise_id, index=set_index)
            for set_index, set_raw in enumerate(sets_raw)
        ),
    )


def _coerce_set(raw: Any, *, exercise_id: str, index: int) -> WorkoutSet:
    if isinstance(raw, WorkoutSet):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(f"sets[{index}] must be an object; received {raw!r}.")

    set_number = _optional_int(raw.get("set_number"), field="set_number")
    return WorkoutSet(
        id=_optional_id(raw.get("id")),
        exercise_id=_optional_id(raw.get("workout_exercise_id") or raw.get("exercise_id")) or exercise_id,
        set_number=set_number if set_number is not None else index + 1,
        reps=_optional_int(raw.get("reps"), field="reps") or 0,
        weight=coerce_number(raw.get("weight"), field="weight"),
        rir=_optional_int(raw.get("rir"), field="rir"),
        completed_at=parse_timestamp(raw.get("completed_at"), field="completed_at", allow_empty=True),
    )


def _children(raw: Mapping[str, Any], *keys: str, field: str) -> list[Any]:
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise ValidationError(f"{field} must be a list; received {value!r}.")
        return list(value)
    return []


def _optional_int(value: Any, *, field: str) -> Optional[int]:
    number = coerce_number(value, field=field, allow_float=False)
    return int(number) if number is not None else None


def _optional_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value)

"""
Aggregate statistics over a user's nested session -> exercise -> set history.

Every function filters to completed sessions first and treats missing
numbers as zero, so an empty or sparse history yields zeroed results rather
than errors. Rounding is half-up (``2.5 -> 3``) throughout.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional

from .config import DEFAULT_PERIOD_DAYS, DEFAULT_RECORD_LIMIT, DEFAULT_TREND_LIMIT
from .models import SessionInput, WorkoutSession, completed_sessions, ensure_aware
from .muscles import ExerciseMuscleMap
from .streaks import resolve_now

LOGGER = logging.getLogger(__name__)

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

__all__ = [
    "AllTimeStats",
    "PeriodStats",
    "PeriodChanges",
    "PeriodComparison",
    "PersonalRecord",
    "MuscleGroupStat",
    "StrengthTrendPoint",
    "ComputedStatistics",
    "round_half_up",
    "percent_change",
    "compute_all_time_stats",
    "compute_period_stats",
    "compute_period_comparison",
    "compute_personal_records",
    "compute_muscle_group_breakdown",
    "prepare_strength_trend_data",
    "compute_all_statistics",
]


@dataclass(frozen=True)
class AllTimeStats:
    total_workouts: int = 0
    total_sets: int = 0
    total_reps: int = 0
    total_volume: int = 0
    total_duration: int = 0  # minutes
    avg_duration: float = 0.0  # minutes
    avg_sets_per_workout: float = 0.0
    avg_volume_per_workout: float = 0.0
    avg_reps_per_set: float = 0.0
    avg_rir: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PeriodStats:
    workouts: int = 0
    sets: int = 0
    reps: int = 0
    volume: int = 0
    duration: int = 0  # minutes

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PeriodChanges:
    """Percent change of each metric, current period against the previous one."""

    workouts: int = 0
    sets: int = 0
    reps: int = 0
    volume: int = 0
    duration: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PeriodComparison:
    """
    Trailing window against the window before it.

    This is a snapshot of ``as_of``: the windows move with the clock, so two
    calls at different instants can disagree for the same history.
    """

    current: PeriodStats
    previous: PeriodStats
    changes: PeriodChanges
    days: int
    as_of: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict(),
            "changes": self.changes.to_dict(),
            "days": self.days,
            "as_of": self.as_of.isoformat(),
        }


@dataclass(frozen=True)
class PersonalRecord:
    """
    Best marks for one exercise name.

    The three maxima are tracked independently and need not come from the
    same set; `achieved_at` belongs to the set holding `max_volume`.
    """

    exercise_name: str
    max_weight: float
    max_reps: int
    max_volume: float
    achieved_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["achieved_at"] = self.achieved_at.isoformat() if self.achieved_at else None
        return payload


@dataclass(frozen=True)
class MuscleGroupStat:
    muscle_group: str
    volume: int
    sets: int
    reps: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StrengthTrendPoint:
    date: str
    strength_score: float
    workout_number: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ComputedStatistics:
    all_time: AllTimeStats
    period_comparison: PeriodComparison
    personal_records: List[PersonalRecord] = field(default_factory=list)
    muscle_groups: List[MuscleGroupStat] = field(default_factory=list)
    strength_trend: List[StrengthTrendPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "all_time": self.all_time.to_dict(),
            "period_comparison": self.period_comparison.to_dict(),
            "personal_records": [record.to_dict() for record in self.personal_records],
            "muscle_groups": [group.to_dict() for group in self.muscle_groups],
            "strength_trend": [point.to_dict() for point in self.strength_trend],
        }


@dataclass
class _Totals:
    workouts: int = 0
    sets: int = 0
    reps: int = 0
    volume: float = 0.0
    duration_sec: float = 0.0
    rir_sum: float = 0.0
    rir_count: int = 0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward positive infinity, e.g. ``2.5 -> 3`` and ``-2.5 -> -2``."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _round_int(value: float) -> int:
    return int(round_half_up(value))


def _safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def percent_change(current: float, previous: float) -> int:
    """
    Whole-number percent change from `previous` to `current`.

    Growth from nothing reports 100; no activity in either period reports 0.
    """
    if previous == 0:
        return 100 if current > 0 else 0
    return _round_int((current - previous) / previous * 100)


def _accumulate(sessions: Iterable[WorkoutSession]) -> _Totals:
    totals = _Totals()
    for session in sessions:
        totals.workouts += 1
        totals.duration_sec += session.total_duration_sec or 0
        for _, workout_set in session.iter_sets():
            totals.sets += 1
            totals.reps += workout_set.reps or 0
            totals.volume += workout_set.volume
            if workout_set.rir is not None:
                totals.rir_sum += workout_set.rir
                totals.rir_count += 1
    return totals


def compute_all_time_stats(sessions: Iterable[SessionInput]) -> AllTimeStats:
    """Lifetime totals and per-workout/per-set averages."""
    totals = _accumulate(completed_sessions(sessions))
    avg_rir = (
        round_half_up(totals.rir_sum / totals.rir_count, 1) if totals.rir_count else None
    )
    return AllTimeStats(
        total_workouts=totals.workouts,
        total_sets=totals.sets,
        total_reps=totals.reps,
        total_volume=_round_int(totals.volume),
        total_duration=_round_int(totals.duration_sec / 60),
        avg_duration=round_half_up(_safe_ratio(totals.duration_sec, totals.workouts) / 60, 1),
        avg_sets_per_workout=round_half_up(_safe_ratio(totals.sets, totals.workouts), 1),
        avg_volume_per_workout=round_half_up(_safe_ratio(totals.volume, totals.workouts), 1),
        avg_reps_per_set=round_half_up(_safe_ratio(totals.reps, totals.sets), 1),
        avg_rir=avg_rir,
    )


def compute_period_stats(
    sessions: Iterable[SessionInput],
    start: datetime,
    end: datetime,
) -> PeriodStats:
    """Totals for completed sessions that started within ``[start, end)``."""
    start = ensure_aware(start)
    end = ensure_aware(end)
    in_range = [
        session for session in completed_sessions(sessions) if start <= session.started_at < end
    ]
    totals = _accumulate(in_range)
    return PeriodStats(
        workouts=totals.workouts,
        sets=totals.sets,
        reps=totals.reps,
        volume=_round_int(totals.volume),
        duration=_round_int(totals.duration_sec / 60),
    )


def compute_period_comparison(
    sessions: Iterable[SessionInput],
    days: int = DEFAULT_PERIOD_DAYS,
    *,
    now: Optional[datetime] = None,
) -> PeriodComparison:
    """Compare the trailing `days` window with the window just before it."""
    completed = completed_sessions(sessions)
    current_end = resolve_now(now)
    current_start = current_end - timedelta(days=days)
    previous_start = current_end - timedelta(days=days * 2)

    current = compute_period_stats(completed, current_start, current_end)
    previous = compute_period_stats(completed, previous_start, current_start)
    changes = PeriodChanges(
        workouts=percent_change(current.workouts, previous.workouts),
        sets=percent_change(current.sets, previous.sets),
        reps=percent_change(current.reps, previous.reps),
        volume=percent_change(current.volume, previous.volume),
        duration=percent_change(current.duration, previous.duration),
    )
    return PeriodComparison(
        current=current,
        previous=previous,
        changes=changes,
        days=days,
        as_of=current_end,
    )


def compute_personal_records(
    sessions: Iterable[SessionInput],
    limit: int = DEFAULT_RECORD_LIMIT,
) -> List[PersonalRecord]:
    """Per-exercise bests, strongest single-set volume first."""
    bests: Dict[str, Dict[str, Any]] = {}
    for session in completed_sessions(sessions):
        for exercise, workout_set in session.iter_sets():
            weight = float(workout_set.weight or 0)
            reps = workout_set.reps or 0
            volume = workout_set.volume
            best = bests.get(exercise.name)
            if best is None:
                bests[exercise.name] = {
                    "max_weight": weight,
                    "max_reps": reps,
                    "max_volume": volume,
                    "achieved_at": workout_set.completed_at,
                }
                continue
            if volume > best["max_volume"]:
                best["max_volume"] = volume
                best["achieved_at"] = workout_set.completed_at
            best["max_weight"] = max(best["max_weight"], weight)
            best["max_reps"] = max(best["max_reps"], reps)

    records = [PersonalRecord(exercise_name=name, **best) for name, best in bests.items()]
    records.sort(key=lambda record: record.max_volume, reverse=True)
    return records[: max(limit, 0)]


def compute_muscle_group_breakdown(
    sessions: Iterable[SessionInput],
    muscle_map: ExerciseMuscleMap,
) -> List[MuscleGroupStat]:
    """
    Volume, sets and reps per primary muscle group.

    A set counts in full toward every primary group of its exercise, while the
    percentage denominator counts each set's volume once. Percentages of a
    history with multi-group exercises therefore add up to more than 100.
    """
    buckets: Dict[str, Dict[str, float]] = {}
    total_volume = 0.0
    for session in completed_sessions(sessions):
        for exercise in session.exercises:
            groups = muscle_map.groups_for(exercise.name)
            for workout_set in exercise.sets:
                volume = workout_set.volume
                reps = workout_set.reps or 0
                total_volume += volume
                for group in groups:
                    bucket = buckets.setdefault(group, {"volume": 0.0, "sets": 0, "reps": 0})
                    bucket["volume"] += volume
                    bucket["sets"] += 1
                    bucket["reps"] += reps

    breakdown = [
        MuscleGroupStat(
            muscle_group=group,
            volume=_round_int(bucket["volume"]),
            sets=int(bucket["sets"]),
            reps=int(bucket["reps"]),
            percentage=_round_int(bucket["volume"] / total_volume * 100) if total_volume > 0 else 0,
        )
        for group, bucket in buckets.items()
    ]
    breakdown.sort(key=lambda stat: stat.volume, reverse=True)
    return breakdown


def prepare_strength_trend_data(
    sessions: Iterable[SessionInput],
    limit: int = DEFAULT_TREND_LIMIT,
    *,
    tz: Optional[tzinfo] = None,
) -> List[StrengthTrendPoint]:
    """Most recent scored sessions in chronological order, numbered from 1."""
    scored = [session for session in completed_sessions(sessions) if session.strength_score is not None]
    scored.sort(key=lambda session: session.started_at)
    recent = scored[-limit:] if limit > 0 else []
    return [
        StrengthTrendPoint(
            date=_short_date(session.started_at, tz),
            strength_score=float(session.strength_score or 0),
            workout_number=index,
        )
        for index, session in enumerate(recent, start=1)
    ]


def compute_all_statistics(
    sessions: Iterable[SessionInput],
    *,
    muscle_map: Optional[ExerciseMuscleMap] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    period_days: int = DEFAULT_PERIOD_DAYS,
    record_limit: int = DEFAULT_RECORD_LIMIT,
    trend_limit: int = DEFAULT_TREND_LIMIT,
) -> ComputedStatistics:
    """
    Build the full statistics bundle consumed by the presentation layer.

    Args:
        sessions: Every session of the user, fetched with exercises and sets.
        muscle_map: Exercise to muscle-group lookup; the bundled templates
            are used when omitted.
        now: Clock reading for the period comparison.
        tz: Zone used for chart labels; defaults to the system local zone.
    """
    completed = completed_sessions(sessions)
    lookup = muscle_map if muscle_map is not None else ExerciseMuscleMap.builtin()
    bundle = ComputedStatistics(
        all_time=compute_all_time_stats(completed),
        period_comparison=compute_period_comparison(completed, period_days, now=now),
        personal_records=compute_personal_records(completed, record_limit),
        muscle_groups=compute_muscle_group_breakdown(completed, lookup),
        strength_trend=prepare_strength_trend_data(completed, trend_limit, tz=tz),
    )
    LOGGER.debug(
        "Computed statistics for %d completed sessions (%d records, %d muscle groups)",
        len(completed),
        len(bundle.personal_records),
        len(bundle.muscle_groups),
    )
    return bundle


def _short_date(moment: datetime, tz: Optional[tzinfo]) -> str:
    local = moment.astimezone(tz)
    return f"{_MONTH_ABBR[local.month - 1]} {local.day}"

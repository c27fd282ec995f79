"""lift_tracker package."""

from importlib import metadata
from typing import Any

try:
    __version__ = metadata.version("lift-tracker")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for local edits
    __version__ = "0.0.0"

__all__ = [
    "app",
    "__version__",
    "calculate_streaks",
    "compute_all_statistics",
    "workout_dates_for_month",
]


def __getattr__(name: str) -> Any:  # pragma: no cover - exercised indirectly
    if name == "app":
        from .cli import app

        return app
    if name == "calculate_streaks":
        from .streaks import calculate_streaks

        return calculate_streaks
    if name == "workout_dates_for_month":
        from .streaks import workout_dates_for_month

        return workout_dates_for_month
    if name == "compute_all_statistics":
        from .statistics import compute_all_statistics

        return compute_all_statistics
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

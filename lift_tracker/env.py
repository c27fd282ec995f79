from __future__ import annotations

import os

PRIMARY_PREFIX = "LIFT_TRACKER_"


def get_env(name: str, default: str | None = None) -> str | None:
    """
    Resolve configuration environment variables.

    Every setting lives under the ``LIFT_TRACKER_`` prefix, e.g.
    ``LIFT_TRACKER_SESSIONS_FILE``.
    """
    value = os.getenv(f"{PRIMARY_PREFIX}{name}")
    if value is not None:
        return value
    return default

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .env import get_env

try:  # pragma: no cover - Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib  # type: ignore

DEFAULT_PERIOD_DAYS = 7
DEFAULT_RECORD_LIMIT = 10
DEFAULT_TREND_LIMIT = 15
DEFAULT_FREQUENCY_WEEKS = 4


@dataclass(frozen=True)
class StatisticsSettings:
    period_days: int = DEFAULT_PERIOD_DAYS
    personal_record_limit: int = DEFAULT_RECORD_LIMIT
    strength_trend_limit: int = DEFAULT_TREND_LIMIT


@dataclass(frozen=True)
class AppConfig:
    statistics: StatisticsSettings = StatisticsSettings()
    frequency_weeks: int = DEFAULT_FREQUENCY_WEEKS
    timezone: str | None = None
    templates_file: str | None = None

    def zone(self) -> tzinfo | None:
        """Resolve the configured zone; ``None`` means the system local zone."""
        return resolve_timezone(self.timezone)


def resolve_timezone(name: str | None) -> tzinfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {name!r}.") from exc


def _config_path() -> Path | None:
    """Resolve the TOML configuration file, if present."""
    env_override = get_env("CONFIG")
    if env_override:
        path = Path(env_override).expanduser()
        return path if path.exists() else None

    default_path = Path("config/lift_tracker.toml")
    if default_path.exists():
        return default_path
    return None


def _load_toml(path: Path) -> Mapping[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce_positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _coerce_optional_str(raw: Any) -> str | None:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else {}


def _build_config(raw: Mapping[str, Any]) -> AppConfig:
    stats_raw = _section(raw, "statistics")
    streaks_raw = _section(raw, "streaks")
    muscles_raw = _section(raw, "muscles")

    statistics = StatisticsSettings(
        period_days=_coerce_positive_int(stats_raw.get("period_days"), DEFAULT_PERIOD_DAYS),
        personal_record_limit=_coerce_positive_int(
            stats_raw.get("personal_record_limit"), DEFAULT_RECORD_LIMIT
        ),
        strength_trend_limit=_coerce_positive_int(
            stats_raw.get("strength_trend_limit"), DEFAULT_TREND_LIMIT
        ),
    )
    return AppConfig(
        statistics=statistics,
        frequency_weeks=_coerce_positive_int(streaks_raw.get("frequency_weeks"), DEFAULT_FREQUENCY_WEEKS),
        timezone=_coerce_optional_str(streaks_raw.get("timezone")),
        templates_file=_coerce_optional_str(muscles_raw.get("templates_file")),
    )


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    timezone_override = _coerce_optional_str(get_env("TIMEZONE"))
    if timezone_override is None:
        return config
    return replace(config, timezone=timezone_override)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load configuration once, falling back to built-in defaults."""
    path = _config_path()
    config = _build_config(_load_toml(path)) if path else AppConfig()
    return _apply_env_overrides(config)


def as_dict() -> dict[str, Any]:
    """Return the effective configuration for debug/CLI display."""
    config = get_config()
    return {
        "statistics": {
            "period_days": config.statistics.period_days,
            "personal_record_limit": config.statistics.personal_record_limit,
            "strength_trend_limit": config.statistics.strength_trend_limit,
        },
        "streaks": {
            "frequency_weeks": config.frequency_weeks,
            "timezone": config.timezone or "local",
        },
        "muscles": {
            "templates_file": config.templates_file or "built-in",
        },
        "source": str(_config_path() or "defaults"),
    }

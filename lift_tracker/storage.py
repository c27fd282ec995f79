from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from .env import get_env
from .models import WorkoutSession, parse_sessions

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
LOGGER = logging.getLogger(__name__)


def _data_dir() -> Path:
    override = get_env("DATA_DIR")
    return Path(override).expanduser() if override else DEFAULT_DATA_DIR


def sessions_file() -> Path:
    """Location of the exported sessions JSON (nested exercises and sets)."""
    override = get_env("SESSIONS_FILE")
    if override:
        return Path(override).expanduser()
    return _data_dir() / "sessions.json"


def _read_json_list(path: Path, *, label: str) -> List[Any]:
    raw = path.read_text(encoding="utf-8").strip() or "[]"
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not parse {path}: {exc}") from exc

    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON list of {label}")
    if not all(isinstance(item, dict) for item in payload):
        raise ValueError(f"{path} must contain a JSON list of {label} objects")
    return payload


def load_raw_sessions(path: Path | str | None = None) -> List[dict[str, Any]]:
    """Read the raw session rows; a missing file means no history yet."""
    target = Path(path).expanduser() if path else sessions_file()
    if not target.exists():
        LOGGER.info("No sessions file at %s; starting from an empty history", target)
        return []
    rows = _read_json_list(target, label="sessions")
    LOGGER.debug("Loaded %d session rows from %s", len(rows), target)
    return rows


def load_sessions(path: Path | str | None = None) -> List[WorkoutSession]:
    """Load every stored session with its exercises and sets in one read."""
    return parse_sessions(load_raw_sessions(path))


def load_exercise_templates(path: Path) -> List[dict[str, Any]]:
    """Load exercise templates (``name``/``primaryMuscles`` entries) from disk."""
    if not path.exists():
        raise FileNotFoundError(f"Exercise templates file not found: {path}")
    templates = _read_json_list(path, label="exercise templates")
    LOGGER.debug("Loaded %d exercise templates from %s", len(templates), path)
    return templates

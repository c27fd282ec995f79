from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .config import get_config
from .constants import DEFAULT_EXERCISE_TEMPLATES, DEFAULT_MUSCLE_GROUP
from .storage import load_exercise_templates

__all__ = ["ExerciseMuscleMap", "load_muscle_map"]


class ExerciseMuscleMap(Mapping[str, tuple[str, ...]]):
    """
    Read-only lookup of lower-cased exercise name to primary muscle groups.

    Built once by the host application and handed to the aggregator so the
    breakdown never reaches for module-level state.
    """

    def __init__(self, entries: Mapping[str, Iterable[str]] | None = None) -> None:
        normalised: dict[str, tuple[str, ...]] = {}
        for name, groups in (entries or {}).items():
            key = str(name).lower()
            if key:
                normalised[key] = tuple(dict.fromkeys(str(group) for group in groups if str(group).strip()))
        self._entries = MappingProxyType(normalised)

    @classmethod
    def from_templates(cls, templates: Iterable[Mapping[str, Any]]) -> "ExerciseMuscleMap":
        """Build the map from exercise templates (``name`` + ``primaryMuscles``)."""
        entries: dict[str, list[str]] = {}
        for template in templates:
            name = template.get("name")
            if not isinstance(name, str) or not name.strip():
                continue
            primary = template.get("primaryMuscles", template.get("primary_muscles")) or []
            if isinstance(primary, str):
                primary = [primary]
            entries[name] = list(primary)
        return cls(entries)

    @classmethod
    def builtin(cls) -> "ExerciseMuscleMap":
        return cls.from_templates(DEFAULT_EXERCISE_TEMPLATES)

    def groups_for(self, exercise_name: str | None) -> tuple[str, ...]:
        """Primary muscle groups for an exercise, ``("Other",)`` when unknown."""
        groups = self._entries.get((exercise_name or "").lower())
        return groups or (DEFAULT_MUSCLE_GROUP,)

    def __getitem__(self, key: str) -> tuple[str, ...]:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def load_muscle_map(path: Path | str | None = None) -> ExerciseMuscleMap:
    """
    Resolve the exercise templates file and build the lookup table.

    An explicit `path` wins over the configured ``[muscles] templates_file``;
    without either, the bundled templates are used.
    """
    source = path or get_config().templates_file
    if not source:
        return ExerciseMuscleMap.builtin()
    return ExerciseMuscleMap.from_templates(load_exercise_templates(Path(source)))

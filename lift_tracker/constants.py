from __future__ import annotations

DEFAULT_MUSCLE_GROUP = "Other"

# Bundled exercise templates; only the primary muscles feed the breakdown.
DEFAULT_EXERCISE_TEMPLATES: tuple[dict[str, object], ...] = (
    {"name": "Barbell Bench Press", "primaryMuscles": ["Chest"], "secondaryMuscles": ["Triceps", "Shoulders"]},
    {"name": "Incline Dumbbell Press", "primaryMuscles": ["Chest"], "secondaryMuscles": ["Shoulders", "Triceps"]},
    {"name": "Dumbbell Fly", "primaryMuscles": ["Chest"], "secondaryMuscles": []},
    {"name": "Push-Up", "primaryMuscles": ["Chest"], "secondaryMuscles": ["Triceps", "Core"]},
    {"name": "Dip", "primaryMuscles": ["Chest", "Triceps"], "secondaryMuscles": ["Shoulders"]},
    {"name": "Overhead Press", "primaryMuscles": ["Shoulders"], "secondaryMuscles": ["Triceps"]},
    {"name": "Lateral Raise", "primaryMuscles": ["Shoulders"], "secondaryMuscles": []},
    {"name": "Face Pull", "primaryMuscles": ["Shoulders"], "secondaryMuscles": ["Back"]},
    {"name": "Pull-Up", "primaryMuscles": ["Back"], "secondaryMuscles": ["Biceps"]},
    {"name": "Lat Pulldown", "primaryMuscles": ["Back"], "secondaryMuscles": ["Biceps"]},
    {"name": "Barbell Row", "primaryMuscles": ["Back"], "secondaryMuscles": ["Biceps"]},
    {"name": "Seated Cable Row", "primaryMuscles": ["Back"], "secondaryMuscles": ["Biceps"]},
    {"name": "Deadlift", "primaryMuscles": ["Back", "Hamstrings", "Glutes"], "secondaryMuscles": ["Core"]},
    {"name": "Romanian Deadlift", "primaryMuscles": ["Hamstrings", "Glutes"], "secondaryMuscles": ["Back"]},
    {"name": "Back Squat", "primaryMuscles": ["Quadriceps", "Glutes"], "secondaryMuscles": ["Core"]},
    {"name": "Front Squat", "primaryMuscles": ["Quadriceps"], "secondaryMuscles": ["Glutes", "Core"]},
    {"name": "Leg Press", "primaryMuscles": ["Quadriceps", "Glutes"], "secondaryMuscles": []},
    {"name": "Walking Lunge", "primaryMuscles": ["Quadriceps", "Glutes"], "secondaryMuscles": ["Hamstrings"]},
    {"name": "Leg Curl", "primaryMuscles": ["Hamstrings"], "secondaryMuscles": []},
    {"name": "Leg Extension", "primaryMuscles": ["Quadriceps"], "secondaryMuscles": []},
    {"name": "Hip Thrust", "primaryMuscles": ["Glutes"], "secondaryMuscles": ["Hamstrings"]},
    {"name": "Standing Calf Raise", "primaryMuscles": ["Calves"], "secondaryMuscles": []},
    {"name": "Barbell Curl", "primaryMuscles": ["Biceps"], "secondaryMuscles": ["Forearms"]},
    {"name": "Hammer Curl", "primaryMuscles": ["Biceps", "Forearms"], "secondaryMuscles": []},
    {"name": "Triceps Pushdown", "primaryMuscles": ["Triceps"], "secondaryMuscles": []},
    {"name": "Skull Crusher", "primaryMuscles": ["Triceps"], "secondaryMuscles": []},
    {"name": "Plank", "primaryMuscles": ["Core"], "secondaryMuscles": []},
    {"name": "Hanging Leg Raise", "primaryMuscles": ["Core"], "secondaryMuscles": []},
)

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Optional

from django.conf import settings
from django.utils import timezone

# Review scheduling
FIRST_INTERVAL_DAYS = {
    1: 1,   # first review
    2: 3,   # second review
}
BASE_EASE_FACTOR = 2.5
EASE_STEP = 0.3
NEUTRAL_DIFFICULTY = 3
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
HARD_SHRINK = 0.7    # difficulty 4-5
EASY_GROWTH = 1.3    # difficulty 1-2

# Points
TASK_POINTS = {
    "Low": 10,
    "Medium": 20,
    "High": 30,
}
DEFAULT_TASK_POINTS = 10
REVIEW_TASK_MULTIPLIER = 2
ON_TIME_BONUS = 15
POMODORO_POINT_STEP = 5
FLASHCARD_POINTS = 2
CHECK_IN_POINTS = 10
WEEKLY_STREAK_BONUS = 50
EARLY_BIRD_HOUR = 9  # tasks finished before this local hour

POINTS_PER_LEVEL = 100
HISTORY_DAYS = 30
LEADERBOARD_SIZE = 10

LEVEL_FORMULAS = ("linear", "sqrt")


@dataclass(frozen=True)
class GamificationRules:
    level_formula: str = "linear"
    achievement_bonus_points: int = 0
    strict_difficulty: bool = False
    # None keeps the datetimes' own zone for calendar-day truncation
    tz: Optional[tzinfo] = field(default=None, compare=False)


def get_rules() -> GamificationRules:
    overrides = getattr(settings, "STUDYCORE", {})
    level_formula = overrides.get("LEVEL_FORMULA", "linear")
    if level_formula not in LEVEL_FORMULAS:
        raise ValueError(f"Unknown LEVEL_FORMULA: {level_formula!r}")
    return GamificationRules(
        level_formula=level_formula,
        achievement_bonus_points=int(overrides.get("ACHIEVEMENT_BONUS_POINTS", 0)),
        strict_difficulty=bool(overrides.get("STRICT_DIFFICULTY", False)),
        tz=timezone.get_default_timezone(),
    )

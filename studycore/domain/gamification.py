"""Points, levels, streaks and achievements for a single user profile.

Every operation works on a copy of the profile it is given and returns the
updated copy, so a failed call never leaves a half-applied profile behind.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..config import (
    CHECK_IN_POINTS,
    DEFAULT_TASK_POINTS,
    EARLY_BIRD_HOUR,
    FLASHCARD_POINTS,
    ON_TIME_BONUS,
    POMODORO_POINT_STEP,
    REVIEW_TASK_MULTIPLIER,
    TASK_POINTS,
    WEEKLY_STREAK_BONUS,
    GamificationRules,
)
from ..utils.time import local_day, local_time
from .enums import EventType, SessionType
from .errors import InvalidPayload, UnknownEventType
from .ledgers import Achievement, AchievementLedger, DailyHistory
from .levels import strategy_for


@dataclass
class GamificationProfile:
    user_id: object
    points: int = 0
    experience: int = 0
    level: int = 1
    streak_days: int = 0
    longest_streak: int = 0
    last_activity: Optional[datetime] = None
    tasks_completed: int = 0
    tasks_completed_on_time: int = 0
    tasks_completed_late: int = 0
    tasks_completed_early_bird: int = 0
    pomodoro_sessions_completed: int = 0
    total_study_minutes: int = 0
    flashcards_reviewed: int = 0
    achievements: AchievementLedger = field(default_factory=AchievementLedger)
    daily_completion_history: DailyHistory = field(default_factory=DailyHistory)


# Event payloads

@dataclass
class TaskCompleted:
    priority: Optional[str] = None
    is_review_task: bool = False
    due_at: Optional[datetime] = None


@dataclass
class PomodoroCompleted:
    duration_minutes: int
    session_type: str = SessionType.WORK.value


@dataclass
class FlashcardReviewed:
    count: int


@dataclass
class DailyCheckIn:
    pass


@dataclass
class EventResult:
    profile: GamificationProfile
    points_awarded: int
    leveled_up: bool
    new_achievements: List[Achievement]
    already_checked_in: bool = False
    message: str = ""


@dataclass(frozen=True)
class AchievementRule:
    name: str
    description: str
    icon: str
    metric: str
    threshold: int


ACHIEVEMENT_CATALOG = (
    AchievementRule("First Step", "Complete your first task", "🌱", "tasks_completed", 1),
    AchievementRule("Getting Started", "Complete 10 tasks", "🌿", "tasks_completed", 10),
    AchievementRule("On a Roll", "Complete 25 tasks", "🌳", "tasks_completed", 25),
    AchievementRule("Task Master", "Complete 50 tasks", "🏆", "tasks_completed", 50),
    AchievementRule("Productivity Champion", "Complete 100 tasks", "👑", "tasks_completed", 100),
    AchievementRule("Three-Day Streak", "Stay active 3 days in a row", "🔥", "streak_days", 3),
    AchievementRule("Week Warrior", "Stay active 7 days in a row", "🗓️", "streak_days", 7),
    AchievementRule("Dedicated Learner", "Stay active 14 days in a row", "📚", "streak_days", 14),
    AchievementRule("Monthly Master", "Stay active 30 days in a row", "🌟", "streak_days", 30),
    AchievementRule("Focus Champion", "Complete 10 Pomodoro sessions", "⏱️",
                    "pomodoro_sessions_completed", 10),
    AchievementRule("Memory Wizard", "Review 50 flashcards", "🧠", "flashcards_reviewed", 50),
    AchievementRule("Study Marathon", "Accumulate 500 minutes of study time", "⌛",
                    "total_study_minutes", 500),
    AchievementRule("Early Bird", "Complete 5 tasks before 9 AM", "🌅",
                    "tasks_completed_early_bird", 5),
)


def new_profile(user_id) -> GamificationProfile:
    return GamificationProfile(user_id=user_id)


def task_points(payload: TaskCompleted, now: datetime) -> Tuple[int, Optional[bool]]:
    """Points for a completed task and whether it was on time (None: no due date)."""
    points = TASK_POINTS.get(payload.priority, DEFAULT_TASK_POINTS)
    if payload.is_review_task:
        points *= REVIEW_TASK_MULTIPLIER

    on_time = None
    if payload.due_at is not None:
        on_time = now <= payload.due_at
        if on_time:
            points += ON_TIME_BONUS
    return points, on_time


def pomodoro_points(duration_minutes: int) -> int:
    duration_minutes = max(0, duration_minutes)
    return duration_minutes // POMODORO_POINT_STEP * POMODORO_POINT_STEP


def advance_streak(profile: GamificationProfile, now: datetime, tz=None) -> bool:
    """Move the activity streak to ``now``; False when already active today."""
    today = local_day(now, tz)
    if profile.last_activity is not None:
        last_day = local_day(profile.last_activity, tz)
        if last_day == today:
            return False
        gap = (today - last_day).days
    else:
        gap = None

    if gap == 1:
        profile.streak_days += 1
    else:
        profile.streak_days = 1
    profile.longest_streak = max(profile.longest_streak, profile.streak_days)
    return True


def award_points(profile: GamificationProfile, points: int, rules: GamificationRules) -> None:
    profile.points += points
    profile.experience += points
    profile.level = strategy_for(rules.level_formula).level_for(profile)


def check_achievements(profile: GamificationProfile, now: datetime,
                       rules: GamificationRules = None) -> List[Achievement]:
    """Add every newly reached achievement to ``profile`` in place.

    Already earned achievements are never added or rewarded twice.
    """
    rules = rules or GamificationRules()
    earned = []
    for rule in ACHIEVEMENT_CATALOG:
        if profile.achievements.has(rule.name):
            continue
        if getattr(profile, rule.metric) >= rule.threshold:
            achievement = Achievement(rule.name, rule.description, rule.icon, now)
            profile.achievements.add(achievement)
            earned.append(achievement)

    if earned and rules.achievement_bonus_points:
        award_points(profile, rules.achievement_bonus_points * len(earned), rules)
    return earned


def _task_completed(profile, payload, now, rules):
    payload = payload or TaskCompleted()
    points, on_time = task_points(payload, now)
    if on_time:
        profile.tasks_completed_on_time += 1
    elif on_time is False:
        profile.tasks_completed_late += 1
    if local_time(now, rules.tz).hour < EARLY_BIRD_HOUR:
        profile.tasks_completed_early_bird += 1
    profile.tasks_completed += 1

    advance_streak(profile, now, rules.tz)
    profile.daily_completion_history.increment(local_day(now, rules.tz))
    profile.last_activity = now
    return points, f"Task completed! +{points} points"


def _review_completed(profile, payload, now, rules):
    payload = copy.copy(payload) if payload is not None else TaskCompleted()
    payload.is_review_task = True
    return _task_completed(profile, payload, now, rules)


def _require(payload, event_type):
    if payload is None:
        raise InvalidPayload(f"{event_type.value} needs an event payload",
                             event_type=event_type.value)
    return payload


def _pomodoro_completed(profile, payload, now, rules):
    payload = _require(payload, EventType.POMODORO_COMPLETED)
    if payload.session_type != SessionType.WORK.value:
        return 0, "Break recorded"
    # Negative durations count as nothing; points never go below zero
    minutes = max(0, payload.duration_minutes)
    if minutes == 0:
        return 0, "Empty session ignored"
    profile.pomodoro_sessions_completed += 1
    profile.total_study_minutes += minutes
    points = pomodoro_points(minutes)
    return points, f"Pomodoro session recorded! +{points} points"


def _flashcard_reviewed(profile, payload, now, rules):
    count = max(0, _require(payload, EventType.FLASHCARD_REVIEWED).count)
    profile.flashcards_reviewed += count
    points = count * FLASHCARD_POINTS
    return points, f"Flashcard review recorded! +{points} points"


def _daily_check_in(profile, payload, now, rules):
    first_ever = profile.last_activity is None
    if not advance_streak(profile, now, rules.tz):
        return None, "Already checked in today"

    if first_ever:
        message = "Welcome! First daily check-in complete."
    elif profile.streak_days == 1:
        message = "Streak started! Come back tomorrow to keep it going."
    else:
        message = f"Streak continued! {profile.streak_days} days in a row!"

    points = CHECK_IN_POINTS
    if profile.streak_days % 7 == 0:
        points += WEEKLY_STREAK_BONUS
        message += " + Weekly Streak Bonus!"
    profile.last_activity = now
    return points, message


_HANDLERS: Dict[EventType, Callable] = {
    EventType.TASK_COMPLETED: _task_completed,
    EventType.REVIEW_COMPLETED: _review_completed,
    EventType.POMODORO_COMPLETED: _pomodoro_completed,
    EventType.FLASHCARD_REVIEWED: _flashcard_reviewed,
    EventType.DAILY_CHECK_IN: _daily_check_in,
}


def record_event(profile: GamificationProfile, event_type, payload, now: datetime,
                 rules: GamificationRules = None) -> EventResult:
    """Apply one qualifying event to ``profile`` and report what changed.

    A repeated daily check-in on the same calendar day is a no-op that
    returns ``already_checked_in=True`` and the profile unchanged.
    """
    rules = rules or GamificationRules()
    try:
        event_type = EventType(event_type)
    except ValueError:
        raise UnknownEventType(f"Unknown event type: {event_type!r}",
                               event_type=str(event_type)) from None

    working = copy.deepcopy(profile)
    old_level = working.level

    points, message = _HANDLERS[event_type](working, payload, now, rules)
    if points is None:
        return EventResult(
            profile=profile,
            points_awarded=0,
            leveled_up=False,
            new_achievements=[],
            already_checked_in=True,
            message=message,
        )

    points_before = working.points
    award_points(working, points, rules)
    new_achievements = check_achievements(working, now, rules)

    return EventResult(
        profile=working,
        points_awarded=working.points - points_before,
        leveled_up=working.level > old_level,
        new_achievements=new_achievements,
        message=message,
    )


def progress_to_next_level(profile: GamificationProfile, rules: GamificationRules = None) -> int:
    rules = rules or GamificationRules()
    return strategy_for(rules.level_formula).points_for_next_level(profile)


def achievement_progress(profile: GamificationProfile) -> List[dict]:
    """How far ``profile`` is towards every catalog achievement, in catalog order."""
    progress = []
    for rule in ACHIEVEMENT_CATALOG:
        current = getattr(profile, rule.metric)
        progress.append({
            "name": rule.name,
            "description": rule.description,
            "icon": rule.icon,
            "threshold": rule.threshold,
            "current": current,
            "percent": min(100, current * 100 // rule.threshold),
            "earned": profile.achievements.has(rule.name),
        })
    return progress


def profile_stats(profile: GamificationProfile, rules: GamificationRules = None) -> dict:
    return {
        "user_id": str(profile.user_id),
        "points": profile.points,
        "level": profile.level,
        "points_to_next_level": progress_to_next_level(profile, rules),
        "streak_days": profile.streak_days,
        "longest_streak": profile.longest_streak,
        "last_activity": profile.last_activity.isoformat() if profile.last_activity else None,
        "tasks_completed": profile.tasks_completed,
        "tasks_completed_on_time": profile.tasks_completed_on_time,
        "tasks_completed_late": profile.tasks_completed_late,
        "tasks_completed_early_bird": profile.tasks_completed_early_bird,
        "tasks_completed_last_30_days": profile.daily_completion_history.total(),
        "pomodoro_sessions_completed": profile.pomodoro_sessions_completed,
        "total_study_minutes": profile.total_study_minutes,
        "flashcards_reviewed": profile.flashcards_reviewed,
        "achievements": [
            {
                "name": a.name,
                "description": a.description,
                "icon": a.icon,
                "earned_at": a.earned_at.isoformat(),
            }
            for a in profile.achievements
        ],
        "achievement_progress": achievement_progress(profile),
        "daily_completion_history": [
            {"date": entry.date.isoformat(), "tasks_completed": entry.tasks_completed}
            for entry in profile.daily_completion_history
        ],
    }

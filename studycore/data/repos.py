from datetime import date, datetime

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..domain.errors import ItemNotFound
from ..domain.gamification import GamificationProfile as ProfileState
from ..domain.ledgers import Achievement, AchievementLedger, DailyCount, DailyHistory
from ..domain.review import ReviewItem
from .models import ActivityLog, GamificationProfile, ReviewLog, ReviewTask

PROFILE_COUNTERS = (
    "points",
    "experience",
    "level",
    "streak_days",
    "longest_streak",
    "last_activity",
    "tasks_completed",
    "tasks_completed_on_time",
    "tasks_completed_late",
    "tasks_completed_early_bird",
    "pomodoro_sessions_completed",
    "total_study_minutes",
    "flashcards_reviewed",
)

REVIEW_FIELDS = (
    "difficulty_rating",
    "last_reviewed_at",
    "review_level",
    "next_review_at",
)


# Review tasks

def to_review_item(task: ReviewTask) -> ReviewItem:
    return ReviewItem(
        id=task.id,
        owner_id=task.owner_id,
        next_review_at=task.next_review_at,
        subject=task.subject,
        priority=task.priority,
        status=task.status,
        due_at=task.due_at,
        is_review_task=task.is_review_task,
        review_level=task.review_level,
        last_reviewed_at=task.last_reviewed_at,
        difficulty_rating=task.difficulty_rating,
    )


def create_task(owner_id, subject, **fields) -> ReviewTask:
    return ReviewTask.objects.create(owner_id=owner_id, subject=subject, **fields)


def get_task_for_update(owner_id, task_id) -> ReviewTask:
    """
    Fetch the owner's task row and lock it for update.
    Must run inside transaction.atomic().
    """
    try:
        return (ReviewTask.objects
                .select_for_update()
                .get(pk=task_id, owner_id=owner_id))
    except ReviewTask.DoesNotExist:
        raise ItemNotFound("Task not found", task_id=str(task_id)) from None


def save_review_state(task: ReviewTask, item: ReviewItem, fields=REVIEW_FIELDS):
    for name in fields:
        setattr(task, name, getattr(item, name))
    task.save(update_fields=list(fields))
    return task


def list_review_items(owner_id):
    tasks = ReviewTask.objects.filter(owner_id=owner_id, is_review_task=True)
    return [to_review_item(task) for task in tasks]


def get_existing_review(owner_id, task_id, idem_key):
    return ReviewLog.objects.filter(
        owner_id=owner_id, task_id=task_id, idempotency_key=idem_key
    ).first()


def persist_review(owner_id, task_id, idem_key, item: ReviewItem, days):
    """
    Insert ReviewLog; if a concurrent duplicate slips in, return the existing one.
    """
    try:
        with transaction.atomic():
            return ReviewLog.objects.create(
                owner_id=owner_id, task_id=task_id, idempotency_key=idem_key,
                difficulty_rating=item.difficulty_rating,
                review_level=item.review_level,
                next_review_at=item.next_review_at,
                days_until_next_review=days,
            ), False
    except IntegrityError:
        # Duplicate idempotency key safeguard
        return get_existing_review(owner_id, task_id, idem_key), True


# Gamification profiles

def _achievement_to_json(achievement: Achievement) -> dict:
    return {
        "name": achievement.name,
        "description": achievement.description,
        "icon": achievement.icon,
        "earned_at": achievement.earned_at.isoformat(),
    }


def _achievement_from_json(data: dict) -> Achievement:
    return Achievement(
        name=data["name"],
        description=data.get("description", ""),
        icon=data.get("icon", ""),
        earned_at=datetime.fromisoformat(data["earned_at"]),
    )


def to_profile_state(row: GamificationProfile) -> ProfileState:
    state = ProfileState(user_id=row.user_id)
    for name in PROFILE_COUNTERS:
        setattr(state, name, getattr(row, name))
    state.achievements = AchievementLedger(
        _achievement_from_json(a) for a in row.achievements
    )
    state.daily_completion_history = DailyHistory(
        DailyCount(date.fromisoformat(d["date"]), d["tasks_completed"])
        for d in row.daily_completion_history
    )
    return state


def get_or_create_profile_for_update(user_id) -> GamificationProfile:
    """
    Fetch profile row and lock it for update to avoid races.
    Create if missing. Must run inside transaction.atomic().
    """
    try:
        return (GamificationProfile.objects
                .select_for_update()
                .get(user_id=user_id))
    except GamificationProfile.DoesNotExist:
        try:
            with transaction.atomic():
                row = GamificationProfile.objects.create(user_id=user_id)
        except IntegrityError:
            # Created concurrently by another request
            pass
        else:
            return (GamificationProfile.objects
                    .select_for_update()
                    .get(pk=row.pk))
        return (GamificationProfile.objects
                .select_for_update()
                .get(user_id=user_id))


def get_or_create_profile(user_id) -> GamificationProfile:
    row, _ = GamificationProfile.objects.get_or_create(user_id=user_id)
    return row


def save_profile_state(row: GamificationProfile, state: ProfileState):
    for name in PROFILE_COUNTERS:
        setattr(row, name, getattr(state, name))
    row.achievements = [_achievement_to_json(a) for a in state.achievements]
    row.daily_completion_history = [
        {"date": entry.date.isoformat(), "tasks_completed": entry.tasks_completed}
        for entry in state.daily_completion_history
    ]
    row.save()
    return row


def top_profiles(limit):
    return list(GamificationProfile.objects.order_by("-points", "-level", "user_id")[:limit])


def get_existing_activity(user_id, idem_key):
    return ActivityLog.objects.filter(user_id=user_id, idempotency_key=idem_key).first()


def persist_activity(user_id, idem_key, event_type, result):
    try:
        with transaction.atomic():
            return ActivityLog.objects.create(
                user_id=user_id,
                idempotency_key=idem_key,
                event_type=event_type,
                created_at=timezone.now(),
                points_awarded=result.points_awarded,
                leveled_up=result.leveled_up,
                already_checked_in=result.already_checked_in,
                new_achievements=[_achievement_to_json(a) for a in result.new_achievements],
                message=result.message[:255],
            ), False
    except IntegrityError:
        return get_existing_activity(user_id, idem_key), True


def achievements_from_log(log: ActivityLog):
    return [_achievement_from_json(a) for a in log.new_achievements]

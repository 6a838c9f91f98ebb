import uuid

from django.db import models
from django.utils import timezone

from ..domain.enums import Priority, TaskStatus


class ReviewTask(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.UUIDField()
    subject = models.CharField(max_length=255)
    priority = models.CharField(
        max_length=16,
        choices=[(p.value, p.value) for p in Priority],
        default=Priority.MEDIUM.value,
    )
    status = models.CharField(
        max_length=16,
        choices=[(s.value, s.value) for s in TaskStatus],
        default=TaskStatus.NOT_STARTED.value,
    )
    due_at = models.DateTimeField(null=True, blank=True)
    is_review_task = models.BooleanField(default=False)
    review_level = models.PositiveIntegerField(default=0)
    last_reviewed_at = models.DateTimeField(null=True, blank=True)
    next_review_at = models.DateTimeField(default=timezone.now)  # UTC
    difficulty_rating = models.PositiveSmallIntegerField(default=3)

    class Meta:
        app_label = "studycore"
        indexes = [
            models.Index(fields=["owner_id", "is_review_task", "next_review_at"]),
        ]


class ReviewLog(models.Model):
    owner_id = models.UUIDField()
    task = models.ForeignKey(ReviewTask, on_delete=models.CASCADE, related_name="reviews")
    difficulty_rating = models.PositiveSmallIntegerField()
    idempotency_key = models.CharField(max_length=64)
    created_at = models.DateTimeField(default=timezone.now)
    review_level = models.PositiveIntegerField()
    next_review_at = models.DateTimeField()
    days_until_next_review = models.PositiveIntegerField()

    class Meta:
        app_label = "studycore"
        unique_together = (("owner_id", "task", "idempotency_key"),)
        indexes = [
            models.Index(fields=["owner_id", "task", "created_at"]),
        ]


class GamificationProfile(models.Model):
    user_id = models.UUIDField(unique=True)
    points = models.PositiveIntegerField(default=0)
    experience = models.PositiveIntegerField(default=0)
    level = models.PositiveIntegerField(default=1)
    streak_days = models.PositiveIntegerField(default=0)
    longest_streak = models.PositiveIntegerField(default=0)
    last_activity = models.DateTimeField(null=True, blank=True)
    tasks_completed = models.PositiveIntegerField(default=0)
    tasks_completed_on_time = models.PositiveIntegerField(default=0)
    tasks_completed_late = models.PositiveIntegerField(default=0)
    tasks_completed_early_bird = models.PositiveIntegerField(default=0)
    pomodoro_sessions_completed = models.PositiveIntegerField(default=0)
    total_study_minutes = models.PositiveIntegerField(default=0)
    flashcards_reviewed = models.PositiveIntegerField(default=0)
    # [{"name", "description", "icon", "earned_at"}], earliest first
    achievements = models.JSONField(default=list)
    # [{"date", "tasks_completed"}], newest first
    daily_completion_history = models.JSONField(default=list)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "studycore"
        indexes = [
            models.Index(fields=["-points", "-level"]),
        ]


class ActivityLog(models.Model):
    user_id = models.UUIDField()
    event_type = models.CharField(max_length=32)
    idempotency_key = models.CharField(max_length=64)
    created_at = models.DateTimeField(default=timezone.now)
    points_awarded = models.IntegerField()
    leveled_up = models.BooleanField(default=False)
    already_checked_in = models.BooleanField(default=False)
    new_achievements = models.JSONField(default=list)
    message = models.CharField(max_length=255, blank=True)

    class Meta:
        app_label = "studycore"
        unique_together = (("user_id", "idempotency_key"),)
        indexes = [
            models.Index(fields=["user_id", "created_at"]),
        ]

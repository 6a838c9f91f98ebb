from rest_framework import serializers

from ..domain.enums import EventType, Priority, SessionType
from ..domain.gamification import (
    DailyCheckIn,
    FlashcardReviewed,
    PomodoroCompleted,
    TaskCompleted,
)


class ReviewInSerializer(serializers.Serializer):
    owner_id = serializers.UUIDField()
    task_id = serializers.UUIDField()
    # Range is enforced by the scheduler (ignored, or rejected in strict mode)
    difficulty_rating = serializers.IntegerField(required=False, allow_null=True)
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_null=True)


class DueQuerySerializer(serializers.Serializer):
    owner_id = serializers.UUIDField()
    until = serializers.DateTimeField(required=False)  # ISO-8601


class TaskCompletedSerializer(serializers.Serializer):
    priority = serializers.ChoiceField(
        choices=[p.value for p in Priority], required=False, allow_null=True
    )
    is_review_task = serializers.BooleanField(default=False)
    due_at = serializers.DateTimeField(required=False, allow_null=True)

    def create(self, validated_data):
        return TaskCompleted(**validated_data)


class PomodoroCompletedSerializer(serializers.Serializer):
    duration_minutes = serializers.IntegerField(min_value=1)
    session_type = serializers.ChoiceField(
        choices=[s.value for s in SessionType], default=SessionType.WORK.value
    )

    def create(self, validated_data):
        return PomodoroCompleted(**validated_data)


class FlashcardReviewedSerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=1)

    def create(self, validated_data):
        return FlashcardReviewed(**validated_data)


class DailyCheckInSerializer(serializers.Serializer):
    def create(self, validated_data):
        return DailyCheckIn()


PAYLOAD_SERIALIZERS = {
    EventType.TASK_COMPLETED: TaskCompletedSerializer,
    EventType.REVIEW_COMPLETED: TaskCompletedSerializer,
    EventType.POMODORO_COMPLETED: PomodoroCompletedSerializer,
    EventType.FLASHCARD_REVIEWED: FlashcardReviewedSerializer,
    EventType.DAILY_CHECK_IN: DailyCheckInSerializer,
}


def build_payload(event_type: EventType, data):
    s = PAYLOAD_SERIALIZERS[event_type](data=data or {})
    s.is_valid(raise_exception=True)
    return s.save()

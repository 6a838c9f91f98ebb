from datetime import datetime

import structlog
from django.db import transaction
from django.utils import timezone

from ..api.serializers import build_payload
from ..config import LEADERBOARD_SIZE, get_rules
from ..data.repos import (
    achievements_from_log,
    get_existing_activity,
    get_or_create_profile as get_or_create_profile_row,
    get_or_create_profile_for_update,
    persist_activity,
    save_profile_state,
    to_profile_state,
    top_profiles,
)
from ..domain import gamification as engine
from ..domain.enums import EventType
from ..domain.errors import UnknownEventType

logger = structlog.get_logger()


def _event_type(value) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        logger.warning("event_rejected", event_type=str(value), error="unknown_event_type")
        raise UnknownEventType(f"Unknown event type: {value!r}", event_type=str(value)) from None


def record_event(user_id, event_type, payload=None, idempotency_key=None,
                 now: datetime = None) -> engine.EventResult:
    """Apply a qualifying activity event to the user's profile and persist it.

    ``payload`` is the raw event data (a mapping) as received from the caller.
    """
    event_type = _event_type(event_type)
    logger.info("event_received",
        user_id=str(user_id),
        event_type=event_type.value,
        idempotency_key=idempotency_key,
    )

    event_payload = build_payload(event_type, payload)
    rules = get_rules()
    now = now or timezone.now()

    with transaction.atomic():
        # Serialize profile updates per user
        row = get_or_create_profile_for_update(user_id)

        if idempotency_key:
            existing = get_existing_activity(user_id, idempotency_key)
            if existing:
                logger.info("idempotent_reuse",
                    user_id=str(user_id),
                    event_type=existing.event_type,
                    points_awarded=existing.points_awarded,
                )
                return engine.EventResult(
                    profile=to_profile_state(row),
                    points_awarded=existing.points_awarded,
                    leveled_up=existing.leveled_up,
                    new_achievements=achievements_from_log(existing),
                    already_checked_in=existing.already_checked_in,
                    message=existing.message,
                )

        result = engine.record_event(to_profile_state(row), event_type, event_payload, now, rules)
        if not result.already_checked_in:
            save_profile_state(row, result.profile)
        if idempotency_key:
            persist_activity(user_id, idempotency_key, event_type.value, result)

    for achievement in result.new_achievements:
        logger.info("achievement_unlocked",
            user_id=str(user_id),
            achievement=achievement.name,
        )
    logger.info("event_recorded",
        user_id=str(user_id),
        event_type=event_type.value,
        points_awarded=result.points_awarded,
        total_points=result.profile.points,
        level=result.profile.level,
        leveled_up=result.leveled_up,
        streak_days=result.profile.streak_days,
        already_checked_in=result.already_checked_in,
    )
    return result


def get_or_create_profile(user_id) -> engine.GamificationProfile:
    return to_profile_state(get_or_create_profile_row(user_id))


def get_stats(user_id) -> dict:
    stats = engine.profile_stats(get_or_create_profile(user_id), get_rules())
    logger.info("stats_requested", user_id=str(user_id), points=stats["points"])
    return stats


def leaderboard(limit=LEADERBOARD_SIZE):
    rows = top_profiles(limit)
    return [
        {
            "rank": rank,
            "user_id": str(row.user_id),
            "points": row.points,
            "level": row.level,
            "streak_days": row.streak_days,
            "achievement_count": len(row.achievements),
        }
        for rank, row in enumerate(rows, start=1)
    ]

from dataclasses import dataclass
from datetime import datetime

import structlog
from django.db import transaction
from django.utils import timezone

from ..api.serializers import DueQuerySerializer, ReviewInSerializer
from ..config import get_rules
from ..data.repos import (
    get_existing_review,
    get_task_for_update,
    list_review_items,
    persist_review,
    save_review_state,
    to_review_item,
)
from ..domain import review as scheduler
from ..domain.errors import StudyCoreError
from ..domain.review import ReviewItem
from ..utils.time import to_local_iso

logger = structlog.get_logger()


@dataclass
class ReviewResult:
    item: ReviewItem
    days_until_next_review: int
    idempotent: bool = False


def mark_for_review(owner_id, task_id) -> ReviewItem:
    now = timezone.now()
    with transaction.atomic():
        task = get_task_for_update(owner_id, task_id)
        item = scheduler.mark_for_review(to_review_item(task), now)
        save_review_state(task, item, fields=(
            "is_review_task", "review_level", "last_reviewed_at", "next_review_at",
        ))

    logger.info("review_task_marked",
        owner_id=str(owner_id),
        task_id=str(task_id),
        next_review_utc=item.next_review_at.isoformat(),
    )
    return item


def complete_review(owner_id, task_id, difficulty_rating=None, idempotency_key=None,
                    now: datetime = None) -> ReviewResult:
    s = ReviewInSerializer(data={
        "owner_id": owner_id,
        "task_id": task_id,
        "difficulty_rating": difficulty_rating,
        "idempotency_key": idempotency_key,
    })
    s.is_valid(raise_exception=True)
    owner_id = s.validated_data["owner_id"]
    task_id = s.validated_data["task_id"]
    rating = s.validated_data.get("difficulty_rating")
    idem = s.validated_data.get("idempotency_key")

    logger.info("review_received",
        owner_id=str(owner_id),
        task_id=str(task_id),
        difficulty_rating=rating,
        idempotency_key=idem,
    )

    rules = get_rules()
    now = now or timezone.now()

    with transaction.atomic():
        # Serialize review updates per task
        task = get_task_for_update(owner_id, task_id)

        # Fast path: return previous result if same idempotency_key
        if idem:
            existing = get_existing_review(owner_id, task_id, idem)
            if existing:
                logger.info("idempotent_reuse",
                    owner_id=str(owner_id),
                    task_id=str(task_id),
                    next_review_utc=existing.next_review_at.isoformat(),
                )
                return ReviewResult(
                    to_review_item(task), existing.days_until_next_review, True
                )

        try:
            outcome = scheduler.complete_review(
                to_review_item(task), now, rating,
                strict=rules.strict_difficulty, tz=rules.tz,
            )
        except StudyCoreError as e:
            logger.warning("review_rejected",
                owner_id=str(owner_id),
                task_id=str(task_id),
                error=e.code,
                message=e.message,
            )
            raise

        save_review_state(task, outcome.item)
        was_idempotent = False
        if idem:
            _, was_idempotent = persist_review(
                owner_id, task_id, idem, outcome.item, outcome.days_until_next_review
            )

    logger.info("review_scheduled",
        owner_id=str(owner_id),
        task_id=str(task_id),
        review_level=outcome.item.review_level,
        days_until_next_review=outcome.days_until_next_review,
        next_review_utc=outcome.item.next_review_at.isoformat(),
        next_review_local=to_local_iso(outcome.item.next_review_at, rules.tz),
    )
    return ReviewResult(outcome.item, outcome.days_until_next_review, was_idempotent)


def due_reviews(owner_id, until: datetime = None):
    data = {"owner_id": owner_id}
    if until is not None:
        data["until"] = until
    qs = DueQuerySerializer(data=data)
    qs.is_valid(raise_exception=True)
    owner_id = qs.validated_data["owner_id"]
    until = qs.validated_data.get("until") or timezone.now()

    due = scheduler.list_due(list_review_items(owner_id), until)

    logger.info("due_reviews_listed",
        owner_id=str(owner_id),
        until_utc=until.isoformat(),
        task_count=len(due),
    )
    return due

"""Spaced-repetition scheduling for review tasks.

A simplified SuperMemo-2 rule: the first two reviews use fixed intervals
(1 and 3 days); later reviews multiply the real time elapsed since the
previous review by an ease factor derived from the difficulty rating.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List, Optional

from ..config import (
    BASE_EASE_FACTOR,
    EASE_STEP,
    EASY_GROWTH,
    FIRST_INTERVAL_DAYS,
    HARD_SHRINK,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    NEUTRAL_DIFFICULTY,
)
from ..utils.time import add_days, elapsed_days, round_half_up
from .enums import Priority, TaskStatus
from .errors import InvalidDifficultyRating, NotAReviewItem


@dataclass
class ReviewItem:
    id: object
    owner_id: object
    next_review_at: datetime
    subject: str = ""
    priority: str = Priority.MEDIUM.value
    status: str = TaskStatus.NOT_STARTED.value
    due_at: Optional[datetime] = None
    is_review_task: bool = True
    review_level: int = 0
    last_reviewed_at: Optional[datetime] = None
    difficulty_rating: int = NEUTRAL_DIFFICULTY


@dataclass
class ReviewOutcome:
    item: ReviewItem
    days_until_next_review: int


def is_valid_difficulty(rating) -> bool:
    # bool is an int subclass but never a rating
    return (
        isinstance(rating, int)
        and not isinstance(rating, bool)
        and MIN_DIFFICULTY <= rating <= MAX_DIFFICULTY
    )


def ease_factor(difficulty_rating: int) -> float:
    return BASE_EASE_FACTOR - EASE_STEP * (difficulty_rating - NEUTRAL_DIFFICULTY)


def base_interval_days(review_level: int, difficulty_rating: int,
                       previous_reviewed_at: Optional[datetime], now: datetime) -> int:
    if review_level in FIRST_INTERVAL_DAYS:
        return FIRST_INTERVAL_DAYS[review_level]

    # Elapsed real time since the previous review, not the scheduled interval
    previous_days = 0
    if previous_reviewed_at is not None:
        previous_days = round_half_up(elapsed_days(now, previous_reviewed_at))
    return max(1, round_half_up(previous_days * ease_factor(difficulty_rating)))


def apply_difficulty_modifier(days: int, difficulty_rating: int) -> int:
    if difficulty_rating >= 4:
        return max(1, math.floor(days * HARD_SHRINK))
    if difficulty_rating <= 2:
        return math.ceil(days * EASY_GROWTH)
    return days


def mark_for_review(item: ReviewItem, now: datetime) -> ReviewItem:
    """Flag ``item`` for spaced repetition; it becomes due immediately."""
    return replace(
        item,
        is_review_task=True,
        review_level=0,
        last_reviewed_at=None,
        next_review_at=now,
    )


def complete_review(item: ReviewItem, now: datetime, difficulty_rating=None,
                    strict: bool = False, tz=None) -> ReviewOutcome:
    """Record a completed review of ``item`` and schedule the next one.

    Out-of-range ratings are ignored (the stored rating is kept) unless
    ``strict`` is set, in which case ``InvalidDifficultyRating`` is raised.
    The given item is left untouched; the updated copy is returned.
    """
    if not item.is_review_task:
        raise NotAReviewItem("This is not a review task", item_id=str(item.id))

    rating = item.difficulty_rating
    if difficulty_rating is not None:
        if is_valid_difficulty(difficulty_rating):
            rating = difficulty_rating
        elif strict:
            raise InvalidDifficultyRating(
                f"Difficulty rating must be an integer in "
                f"[{MIN_DIFFICULTY}, {MAX_DIFFICULTY}]",
                item_id=str(item.id),
                difficulty_rating=difficulty_rating,
            )

    previous_reviewed_at = item.last_reviewed_at
    review_level = item.review_level + 1

    days = base_interval_days(review_level, rating, previous_reviewed_at, now)
    days = apply_difficulty_modifier(days, rating)

    updated = replace(
        item,
        difficulty_rating=rating,
        last_reviewed_at=now,
        review_level=review_level,
        next_review_at=add_days(now, days, tz),
    )
    return ReviewOutcome(item=updated, days_until_next_review=days)


def list_due(items: Iterable[ReviewItem], now: datetime) -> List[ReviewItem]:
    """Review items due at ``now``, most overdue first."""
    due = [
        item for item in items
        if item.is_review_task
        and item.status != TaskStatus.COMPLETED.value
        and item.next_review_at <= now
    ]
    return sorted(due, key=lambda item: item.next_review_at)

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from studycore.domain.enums import TaskStatus
from studycore.domain.errors import InvalidDifficultyRating, NotAReviewItem
from studycore.domain.review import (
    ReviewItem,
    complete_review,
    list_due,
    mark_for_review,
)

logger = logging.getLogger(__name__)

T0 = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)

# Helpers

def make_item(**fields):
    defaults = {
        "id": uuid.uuid4(),
        "owner_id": uuid.uuid4(),
        "next_review_at": T0,
        "subject": "Organic chemistry",
    }
    defaults.update(fields)
    return ReviewItem(**defaults)


def review_twice(item, rating=None):
    """Run the two fixed-interval reviews; the second one lands at T0 + 1 day."""
    first = complete_review(item, T0, rating)
    second = complete_review(first.item, T0 + timedelta(days=1), rating)
    return second.item


# Tests

def test_first_review_is_due_next_day():
    """Rule 1: first completion → level 1, next review in 1 day."""
    outcome = complete_review(make_item(), T0)

    assert outcome.item.review_level == 1
    assert outcome.days_until_next_review == 1
    assert outcome.item.next_review_at == T0 + timedelta(days=1)
    assert outcome.item.last_reviewed_at == T0
    logger.info("✓ Passed: first review scheduled in 1 day")


@pytest.mark.parametrize("gap", [timedelta(minutes=5), timedelta(days=1), timedelta(days=40)])
def test_second_review_is_three_days_regardless_of_gap(gap):
    """Rule 2: second completion → level 2, 3 days, whatever the elapsed time."""
    first = complete_review(make_item(), T0)
    now2 = T0 + gap
    second = complete_review(first.item, now2)

    assert second.item.review_level == 2
    assert second.days_until_next_review == 3
    assert second.item.next_review_at == now2 + timedelta(days=3)


@pytest.mark.parametrize("rating,first_days,second_days", [
    (1, 2, 4),
    (2, 2, 4),
    (3, 1, 3),
    (4, 1, 2),
    (5, 1, 2),
])
def test_difficulty_modifier_applies_to_fixed_intervals(rating, first_days, second_days):
    """The 1 day / 3 day intervals are scaled by the rating like any other."""
    first = complete_review(make_item(), T0, rating)
    second = complete_review(first.item, T0 + timedelta(hours=1), rating)

    assert first.days_until_next_review == first_days
    assert second.days_until_next_review == second_days
    assert second.item.next_review_at == T0 + timedelta(hours=1, days=second_days)


def test_due_time_keeps_local_wall_clock_across_dst():
    new_york = ZoneInfo("America/New_York")
    # Noon EST the day before clocks spring forward
    now = datetime(2025, 3, 8, 17, 0, tzinfo=timezone.utc)
    outcome = complete_review(make_item(), now, tz=new_york)

    assert outcome.days_until_next_review == 1
    assert outcome.item.next_review_at == datetime(2025, 3, 9, 16, 0, tzinfo=timezone.utc)
    assert outcome.item.next_review_at.astimezone(new_york).hour == 12


def test_due_time_without_zone_adds_whole_days():
    now = datetime(2025, 3, 8, 17, 0, tzinfo=timezone.utc)
    outcome = complete_review(make_item(), now)
    assert outcome.item.next_review_at == now + timedelta(days=1)


def test_later_reviews_use_previous_review_timestamp():
    """Regression: elapsed days are measured from the review before this one."""
    item = review_twice(make_item())
    now3 = T0 + timedelta(days=11)  # 10 days after the second review

    outcome = complete_review(item, now3)

    # 10 days * ease 2.5
    assert outcome.days_until_next_review == 25
    assert outcome.item.next_review_at == now3 + timedelta(days=25)
    assert outcome.item.last_reviewed_at == now3
    assert outcome.item.review_level == 3


def test_elapsed_days_round_half_up():
    """5 days * 2.5 = 12.5 rounds up to 13."""
    item = review_twice(make_item())
    outcome = complete_review(item, T0 + timedelta(days=6))
    assert outcome.days_until_next_review == 13


@pytest.mark.parametrize("rating,expected", [
    (1, 41),  # round(10 * 3.1) = 31, ceil(31 * 1.3)
    (2, 37),  # round(10 * 2.8) = 28, ceil(28 * 1.3)
    (3, 25),
    (4, 15),  # round(10 * 2.2) = 22, floor(22 * 0.7)
    (5, 13),  # round(10 * 1.9) = 19, floor(19 * 0.7)
])
def test_difficulty_shapes_interval(rating, expected):
    item = review_twice(make_item(difficulty_rating=rating))
    outcome = complete_review(item, T0 + timedelta(days=11), rating)
    assert outcome.days_until_next_review == expected


def test_harder_ratings_never_lengthen_interval():
    """Rating 5 ≤ rating 3 ≤ rating 1 for the same prior interval."""
    for elapsed in range(0, 30):
        now3 = T0 + timedelta(days=1 + elapsed)
        days = {}
        for rating in (1, 3, 5):
            item = review_twice(make_item(), rating)
            days[rating] = complete_review(item, now3, rating).days_until_next_review
        assert days[5] <= days[3] <= days[1], (elapsed, days)
    logger.info("✓ Passed: difficulty ordering holds for 0-29 elapsed days")


@pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
def test_same_tick_review_is_at_least_one_day(rating):
    """Third review at the same instant as the second still waits ≥ 1 day."""
    item = review_twice(make_item(), rating)
    outcome = complete_review(item, T0 + timedelta(days=1), rating)
    assert outcome.days_until_next_review >= 1


def test_missing_previous_timestamp_counts_as_zero_days():
    item = make_item(review_level=2, last_reviewed_at=None)
    outcome = complete_review(item, T0)
    assert outcome.days_until_next_review == 1


def test_valid_rating_is_stored():
    outcome = complete_review(make_item(), T0, 4)
    assert outcome.item.difficulty_rating == 4


@pytest.mark.parametrize("rating", [0, 6, -1, True, 2.5])
def test_out_of_range_rating_is_ignored(rating):
    """Permissive mode keeps the previous rating."""
    outcome = complete_review(make_item(difficulty_rating=2), T0, rating)
    assert outcome.item.difficulty_rating == 2
    assert outcome.item.review_level == 1


def test_strict_mode_rejects_rating_before_any_change():
    item = make_item()
    with pytest.raises(InvalidDifficultyRating):
        complete_review(item, T0, 9, strict=True)
    assert item.review_level == 0
    assert item.last_reviewed_at is None


def test_non_review_item_is_rejected():
    with pytest.raises(NotAReviewItem) as exc:
        complete_review(make_item(is_review_task=False), T0)
    assert exc.value.to_dict()["error"] == "not_a_review_item"


def test_input_item_is_not_mutated():
    item = make_item()
    snapshot = replace(item)
    complete_review(item, T0, 5)
    assert item == snapshot


def test_mark_for_review_makes_item_due_now():
    item = mark_for_review(make_item(is_review_task=False, review_level=4), T0)
    assert item.is_review_task is True
    assert item.review_level == 0
    assert item.next_review_at == T0


def test_list_due_filters_and_orders():
    """Due items only, most overdue first."""
    owner = uuid.uuid4()
    overdue = make_item(owner_id=owner, next_review_at=T0 - timedelta(days=3))
    due_now = make_item(owner_id=owner, next_review_at=T0)
    slightly = make_item(owner_id=owner, next_review_at=T0 - timedelta(hours=1))
    future = make_item(owner_id=owner, next_review_at=T0 + timedelta(minutes=1))
    done = make_item(owner_id=owner, next_review_at=T0 - timedelta(days=9),
                     status=TaskStatus.COMPLETED.value)
    plain = make_item(owner_id=owner, next_review_at=T0 - timedelta(days=9),
                      is_review_task=False)

    due = list_due([due_now, future, done, slightly, plain, overdue], T0)

    assert [i.id for i in due] == [overdue.id, slightly.id, due_now.id]
    logger.info("✓ Passed: due list includes only due review items")

from datetime import date, datetime, timedelta, timezone

from studycore.domain.ledgers import Achievement, AchievementLedger, DailyCount, DailyHistory

EARNED = datetime(2025, 5, 1, tzinfo=timezone.utc)


def test_ledger_rejects_duplicate_names():
    ledger = AchievementLedger()
    assert ledger.add(Achievement("Week Warrior", "7 days", "🗓️", EARNED)) is True
    assert ledger.add(Achievement("Week Warrior", "again", "🗓️", EARNED + timedelta(days=1))) is False

    assert len(ledger) == 1
    assert next(iter(ledger)).earned_at == EARNED


def test_ledger_loaded_with_duplicates_keeps_first():
    ledger = AchievementLedger([
        Achievement("First Step", "", "", EARNED),
        Achievement("Memory Wizard", "", "", EARNED),
        Achievement("First Step", "", "", EARNED + timedelta(days=3)),
    ])
    assert ledger.names() == ["First Step", "Memory Wizard"]


def test_history_merges_and_orders_loaded_entries():
    history = DailyHistory([
        DailyCount(date(2025, 5, 1), 2),
        DailyCount(date(2025, 5, 3), 1),
        DailyCount(date(2025, 5, 1), 1),
    ])
    assert [(e.date, e.tasks_completed) for e in history] == [
        (date(2025, 5, 3), 1),
        (date(2025, 5, 1), 3),
    ]
    assert history.total() == 4


def test_history_drops_oldest_past_limit():
    history = DailyHistory(limit=3)
    for offset in range(5):
        history.increment(date(2025, 5, 1) + timedelta(days=offset))

    assert [e.date.day for e in history] == [5, 4, 3]
    assert history.get(date(2025, 5, 1)) is None

"""Ordered containers backing a gamification profile."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Iterator, List, Optional

from ..config import HISTORY_DAYS


@dataclass(frozen=True)
class Achievement:
    name: str
    description: str
    icon: str
    earned_at: datetime


@dataclass
class DailyCount:
    date: date
    tasks_completed: int = 0


class AchievementLedger:
    """Earned achievements in insertion order, unique by name."""

    def __init__(self, achievements: Iterable[Achievement] = ()):
        self._by_name: Dict[str, Achievement] = {}
        for achievement in achievements:
            self.add(achievement)

    def add(self, achievement: Achievement) -> bool:
        if achievement.name in self._by_name:
            return False
        self._by_name[achievement.name] = achievement
        return True

    def has(self, name: str) -> bool:
        return name in self._by_name

    def names(self) -> List[str]:
        return list(self._by_name)

    def __iter__(self) -> Iterator[Achievement]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __eq__(self, other):
        if not isinstance(other, AchievementLedger):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self):
        return f"AchievementLedger({self.names()!r})"


class DailyHistory:
    """Per-day completion counts, newest first, at most ``limit`` days."""

    def __init__(self, entries: Iterable[DailyCount] = (), limit: int = HISTORY_DAYS):
        self.limit = limit
        merged: Dict[date, int] = {}
        for entry in entries:
            merged[entry.date] = merged.get(entry.date, 0) + entry.tasks_completed
        self._entries = [DailyCount(day, count) for day, count in merged.items()]
        self._trim()

    def _trim(self):
        self._entries.sort(key=lambda entry: entry.date, reverse=True)
        del self._entries[self.limit:]

    def get(self, day: date) -> Optional[DailyCount]:
        for entry in self._entries:
            if entry.date == day:
                return entry
        return None

    def increment(self, day: date, by: int = 1) -> DailyCount:
        entry = self.get(day)
        if entry is None:
            entry = DailyCount(day, 0)
            self._entries.append(entry)
        entry.tasks_completed += by
        self._trim()
        return entry

    def total(self) -> int:
        return sum(entry.tasks_completed for entry in self._entries)

    def __iter__(self) -> Iterator[DailyCount]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other):
        if not isinstance(other, DailyHistory):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self):
        return f"DailyHistory({self._entries!r})"

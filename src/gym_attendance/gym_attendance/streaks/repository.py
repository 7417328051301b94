from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Streak, StreakHistoryEntry


class StreakRepository(Protocol):
    def find_by_athlete(self, athlete_id: str) -> Optional[Streak]:
        raise NotImplementedError

    def create_if_absent(self, streak: Streak) -> Streak:
        """Insert ``streak`` unless the athlete already has one; return the stored row."""

        raise NotImplementedError

    def compare_and_set(self, streak: Streak, *, expected_version: int) -> bool:
        """Persist ``streak`` only if the stored version still equals ``expected_version``.

        A successful write bumps the stored version by one. Returns False when
        another writer got there first; nothing is written in that case.
        """

        raise NotImplementedError


class StreakHistoryRepository(Protocol):
    def find_open(self, athlete_id: str) -> Optional[StreakHistoryEntry]:
        raise NotImplementedError

    def insert(self, entry: StreakHistoryEntry) -> None:
        raise NotImplementedError

    def close(self, history_id: str, *, end: datetime, duration_days: int, end_reason: str) -> bool:
        """Close an entry that is still open; False if it was already closed."""

        raise NotImplementedError

    def list_for_athlete(self, athlete_id: str) -> Sequence[StreakHistoryEntry]:
        """Newest first."""

        raise NotImplementedError

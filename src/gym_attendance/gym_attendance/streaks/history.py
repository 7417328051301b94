from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.enums import HistoryEndReason
from .model import Streak, StreakDelta, StreakHistoryEntry
from .repository import StreakHistoryRepository
from .transitions import HistoryEffect, history_effect

logger = logging.getLogger(__name__)


class StreakHistoryRecorder:
    """Derives the append-only run ledger from committed streak transitions.

    A run opens on the first increment from zero (first-ever event or after a
    reset) and closes when a reset ends it. Freeze, unfreeze and no-change
    leave the ledger alone.
    """

    def __init__(self, history: StreakHistoryRepository, *, clock: Callable[[], datetime] = now_utc):
        self._history = history
        self._clock = clock

    def record(self, streak: Streak, delta: StreakDelta) -> Optional[StreakHistoryEntry]:
        effect = history_effect(delta)
        if effect is HistoryEffect.OPEN:
            return self._open(streak)
        if effect is HistoryEffect.CLOSE:
            return self.close_open(streak.athlete_id, HistoryEndReason.RESET)
        return None

    def close_open(
        self,
        athlete_id: str,
        reason: HistoryEndReason | str = HistoryEndReason.CLOSED,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[StreakHistoryEntry]:
        entry = self._history.find_open(athlete_id)
        if not entry:
            return None

        end = now or self._clock()
        duration = max(0, (end - entry.start).days)
        reason_value = HistoryEndReason(reason).value

        if not self._history.close(entry.history_id, end=end, duration_days=duration, end_reason=reason_value):
            # Someone else closed it between our read and write.
            return None

        logger.debug("Closed streak run %s for athlete=%s (%s)", entry.history_id, athlete_id, reason_value)
        return replace(entry, end=end, duration_days=duration, end_reason=reason_value)

    def list_for_athlete(self, athlete_id: str) -> Sequence[StreakHistoryEntry]:
        return self._history.list_for_athlete(athlete_id)

    def _open(self, streak: Streak) -> Optional[StreakHistoryEntry]:
        if self._history.find_open(streak.athlete_id):
            return None
        entry = StreakHistoryEntry.open(athlete_id=streak.athlete_id, streak_id=streak.streak_id, now=self._clock())
        self._history.insert(entry)
        logger.debug("Opened streak run %s for athlete=%s", entry.history_id, streak.athlete_id)
        return entry

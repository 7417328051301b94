from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_STREAK_MAX_ATTEMPTS
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from .model import Streak, StreakDelta
from .repository import StreakRepository
from .transitions import apply_transition

logger = logging.getLogger(__name__)


class StreakTracker:
    """Streak Tracker: applies one attendance event to one athlete's streak.

    Each attempt re-reads the durable row, computes the transition and writes it
    back with a compare-and-swap on ``version``. Losing the race means nothing
    was written; the next attempt recomputes from what the winner committed.
    """

    def __init__(
        self,
        streaks: StreakRepository,
        *,
        max_attempts: int = DEFAULT_STREAK_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = now_utc,
    ):
        if int(max_attempts) < 1:
            raise ValueError("max_attempts must be >= 1")
        self._streaks = streaks
        self._max_attempts = int(max_attempts)
        self._clock = clock

    def snapshot(self, athlete_id: str) -> Streak:
        """Current durable streak; created at {0, active, record 0} if absent."""
        athlete_id = require_non_empty(athlete_id, "athleteId")
        existing = self._streaks.find_by_athlete(athlete_id)
        if existing:
            return existing
        return self._streaks.create_if_absent(Streak.new(athlete_id, now=self._clock()))

    def apply(self, athlete_id: str, status: AttendanceStatus) -> tuple[Streak, StreakDelta]:
        for attempt in range(1, self._max_attempts + 1):
            current = self.snapshot(athlete_id)
            updated, delta = apply_transition(current, status, now=self._clock())

            if self._streaks.compare_and_set(updated, expected_version=current.version):
                committed = replace(updated, version=current.version + 1)
                return committed, delta

            logger.debug(
                "Streak CAS lost for athlete=%s (version=%s, attempt %s/%s)",
                athlete_id,
                current.version,
                attempt,
                self._max_attempts,
            )

        raise ConflictError(f"Streak for athlete {athlete_id} kept changing; gave up after {self._max_attempts} attempts")

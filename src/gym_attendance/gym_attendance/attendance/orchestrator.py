from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_non_empty
from ..core.constants import BATCH_SUCCESS_MESSAGE
from ..core.enums import AttendanceStatus, StreakAction
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..gyms.repository import GymRepository
from ..streaks.history import StreakHistoryRecorder
from ..streaks.model import StreakDelta
from ..streaks.service import StreakTracker
from .service import AttendanceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchEntry:
    athlete_id: str
    status: AttendanceStatus


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one batch.

    ``deltas`` holds one row per processed entry, in submission order; failed
    entries appear with ``action="error"``. Non-members are listed in
    ``skipped`` only, never in ``deltas`` or ``total_processed``.
    """

    message: str
    day: date
    total_processed: int
    deltas: tuple[StreakDelta, ...]
    skipped: tuple[str, ...] = field(default=())

    @property
    def errors(self) -> tuple[StreakDelta, ...]:
        return tuple(d for d in self.deltas if d.action is StreakAction.ERROR)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "day": self.day.isoformat(),
            "totalProcessed": self.total_processed,
            "perAthleteDeltas": [d.to_dict() for d in self.deltas],
        }


class AttendanceOrchestrator:
    """Attendance Orchestrator: one gym/day batch, best effort per entry.

    Structural problems (bad day, malformed entries, unknown gym) reject the
    whole call before anything is written. After that, every entry runs on its
    own: store upsert, streak transition, history ledger. A failing entry is
    reported inline and the rest carry on.
    """

    def __init__(
        self,
        store: AttendanceStore,
        tracker: StreakTracker,
        gyms: GymRepository,
        history: Optional[StreakHistoryRecorder] = None,
    ):
        self._store = store
        self._tracker = tracker
        self._gyms = gyms
        self._history = history

    def submit_batch(self, gym_id: str, day, entries: Iterable, requester_id: str) -> BatchResult:
        if not isinstance(requester_id, str) or not requester_id.strip():
            raise AuthenticationError("Requester identity is required")
        gym_id = require_non_empty(gym_id, "gymId")
        d = parse_iso_date(day)
        parsed = self._parse_entries(entries)

        if not self._gyms.get_by_id(gym_id):
            raise NotFoundError("Gym not found")

        deltas: list[StreakDelta] = []
        skipped: list[str] = []
        for entry in parsed:
            try:
                if self.skip_non_member(gym_id, entry.athlete_id):
                    logger.debug("skip-non-member: athlete=%s gym=%s", entry.athlete_id, gym_id)
                    skipped.append(entry.athlete_id)
                    continue
            except Exception:
                logger.warning("Membership lookup failed for athlete=%s gym=%s", entry.athlete_id, gym_id, exc_info=True)
                deltas.append(StreakDelta.error(entry.athlete_id))
                continue

            deltas.append(self._process_entry(gym_id, d, entry))

        result = BatchResult(
            message=BATCH_SUCCESS_MESSAGE,
            day=d,
            total_processed=len(deltas),
            deltas=tuple(deltas),
            skipped=tuple(skipped),
        )
        logger.info(
            "Attendance batch gym=%s day=%s requester=%s processed=%s skipped=%s errors=%s",
            gym_id,
            d.isoformat(),
            requester_id,
            result.total_processed,
            len(skipped),
            len(result.errors),
        )
        return result

    def submit_single(self, gym_id: str, day, athlete_id: str, status, requester_id: str) -> BatchResult:
        return self.submit_batch(gym_id, day, [{"athleteId": athlete_id, "status": status}], requester_id)

    def skip_non_member(self, gym_id: str, athlete_id: str) -> bool:
        """Named policy ``skip-non-member``: entries for non-members are dropped silently."""
        return not self._gyms.is_member(gym_id, athlete_id)

    def _process_entry(self, gym_id: str, day: date, entry: BatchEntry) -> StreakDelta:
        try:
            self._store.upsert(gym_id, entry.athlete_id, day, entry.status)
            streak, delta = self._tracker.apply(entry.athlete_id, entry.status)
        except Exception:
            logger.warning(
                "Attendance entry failed: gym=%s athlete=%s day=%s",
                gym_id,
                entry.athlete_id,
                day.isoformat(),
                exc_info=True,
            )
            return StreakDelta.error(entry.athlete_id)

        if self._history is not None:
            try:
                self._history.record(streak, delta)
            except Exception:
                # The transition is committed; the ledger is derived data.
                logger.warning("Streak history update failed for athlete=%s", entry.athlete_id, exc_info=True)

        return delta

    def _parse_entries(self, entries) -> Sequence[BatchEntry]:
        if entries is None or isinstance(entries, (str, bytes, Mapping)):
            raise ValidationError("entries must be a list")
        try:
            items = list(entries)
        except TypeError:
            raise ValidationError("entries must be a list")

        parsed: list[BatchEntry] = []
        for i, raw in enumerate(items):
            if isinstance(raw, BatchEntry):
                parsed.append(BatchEntry(raw.athlete_id, self._store.parse_status(raw.status)))
                continue
            if not isinstance(raw, Mapping):
                raise ValidationError(f"entries[{i}] must be an object")

            athlete_id = raw.get("athleteId", raw.get("athlete_id"))
            try:
                athlete_id = require_non_empty(athlete_id, "athleteId")
                status = self._store.parse_status(raw.get("status"))
            except ValidationError as e:
                raise ValidationError(f"entries[{i}]: {e}")
            parsed.append(BatchEntry(athlete_id=athlete_id, status=status))
        return parsed

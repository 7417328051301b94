from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc, parse_iso_date
from ..common.validators import parse_status, require_non_empty
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceStore:
    """Attendance Store: validated, day-normalized access to attendance facts.

    Every ``day`` argument accepts a ``date`` or an ISO-8601 string and is
    collapsed to the canonical UTC calendar day before it reaches storage.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        accept_legacy_status: bool = False,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._accept_legacy = bool(accept_legacy_status)
        self._clock = clock

    def parse_status(self, value) -> AttendanceStatus:
        return parse_status(value, accept_legacy=self._accept_legacy)

    def upsert(self, gym_id: str, athlete_id: str, day: date | str, status) -> AttendanceRecord:
        gym_id = require_non_empty(gym_id, "gymId")
        athlete_id = require_non_empty(athlete_id, "athleteId")
        d = parse_iso_date(day)
        st = self.parse_status(status)

        record = self._attendance.upsert(
            gym_id=gym_id,
            athlete_id=athlete_id,
            day=d,
            status=st,
            now=self._clock(),
        )
        logger.debug("Upserted attendance %s/%s/%s -> %s", gym_id, athlete_id, d, st.value)
        return record

    def find_by_athlete_and_day(self, athlete_id: str, day: date | str) -> Optional[AttendanceRecord]:
        return self._attendance.find_by_athlete_and_day(athlete_id, parse_iso_date(day))

    def find_by_gym_and_athlete_and_day(
        self, gym_id: str, athlete_id: str, day: date | str
    ) -> Optional[AttendanceRecord]:
        return self._attendance.find_by_gym_athlete_and_day(gym_id, athlete_id, parse_iso_date(day))

    def find_all_by_gym_and_day(self, gym_id: str, day: date | str) -> Sequence[AttendanceRecord]:
        return self._attendance.find_all_by_gym_and_day(gym_id, parse_iso_date(day))

    def find_latest_for_athlete(self, athlete_id: str, *, on_or_before: date | str) -> Optional[AttendanceRecord]:
        return self._attendance.find_latest_for_athlete(athlete_id, on_or_before=parse_iso_date(on_or_before))

    def find_range_for_athlete(self, athlete_id: str, *, start: date | str, end: date | str) -> Sequence[AttendanceRecord]:
        return self._attendance.find_range_for_athlete(
            athlete_id, start=parse_iso_date(start), end=parse_iso_date(end)
        )

    def purge(self, gym_id: str, athlete_id: str, day: date | str) -> bool:
        """Administrative delete. Streaks already derived from the fact are kept."""
        d = parse_iso_date(day)
        deleted = self._attendance.delete(gym_id, athlete_id, d)
        if deleted:
            logger.info("Purged attendance %s/%s/%s", gym_id, athlete_id, d)
        return deleted

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Persistence for attendance facts.

    Implementations must back ``upsert`` with a unique key on
    (gym_id, athlete_id, day) and perform it as one atomic statement.
    """

    def upsert(
        self,
        *,
        gym_id: str,
        athlete_id: str,
        day: date,
        status: AttendanceStatus,
        now: datetime,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def find_by_athlete_and_day(self, athlete_id: str, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_by_gym_athlete_and_day(self, gym_id: str, athlete_id: str, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_all_by_gym_and_day(self, gym_id: str, day: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_latest_for_athlete(self, athlete_id: str, *, on_or_before: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_range_for_athlete(self, athlete_id: str, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def delete(self, gym_id: str, athlete_id: str, day: date) -> bool:
        """Administrative purge of one attendance fact."""

        raise NotImplementedError

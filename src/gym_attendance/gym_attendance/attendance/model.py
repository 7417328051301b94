from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance fact per (gym, athlete, day).

    ``day`` is always a plain calendar date (the canonical UTC day); rows that
    would violate that never get built.
    """

    gym_id: str
    athlete_id: str
    day: date
    status: AttendanceStatus
    created_at: datetime
    updated_at: datetime
    attendance_id: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.day, datetime) or not isinstance(self.day, date):
            raise TypeError(f"AttendanceRecord.day must be a date, got {type(self.day).__name__}")
        if not isinstance(self.status, AttendanceStatus):
            object.__setattr__(self, "status", AttendanceStatus(self.status))

    @property
    def dedup_key(self) -> tuple[str, str, date]:
        return (self.gym_id, self.athlete_id, self.day)

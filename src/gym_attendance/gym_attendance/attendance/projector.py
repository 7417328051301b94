from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_utc, parse_iso_date
from ..common.validators import require_non_empty
from ..core.constants import STREAK_WINDOW_DAYS
from ..core.enums import AttendanceStatus, Role, StreakState
from ..core.exceptions import NotFoundError
from ..gyms.model import Gym, Member
from ..gyms.repository import GymRepository
from ..streaks.history import StreakHistoryRecorder
from ..streaks.model import StreakHistoryEntry
from ..streaks.service import StreakTracker
from .service import AttendanceStore

logger = logging.getLogger(__name__)


def _iso(value: Optional[date | datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class AthleteDayRow:
    """Read-model: one roster line of the gym/day attendance sheet."""

    athlete_id: str
    name: str
    email: str
    status: Optional[AttendanceStatus]
    current_streak: int
    last_attendance_date: Optional[date]

    @classmethod
    def degraded(cls, member: Member) -> "AthleteDayRow":
        return cls(
            athlete_id=member.user_id,
            name=member.full_name,
            email=member.email,
            status=None,
            current_streak=0,
            last_attendance_date=None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.athlete_id,
            "name": self.name,
            "email": self.email,
            "status": self.status.value if self.status else None,
            "currentStreak": self.current_streak,
            "lastAttendanceDate": _iso(self.last_attendance_date),
        }


@dataclass(frozen=True)
class GymDayView:
    day: date
    gym: Gym
    athletes: tuple[AthleteDayRow, ...]

    def to_dict(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "gym": {"id": self.gym.gym_id, "name": self.gym.name},
            "athletes": [a.to_dict() for a in self.athletes],
        }


@dataclass(frozen=True)
class DayStatus:
    day: date
    status: Optional[AttendanceStatus]

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "status": self.status.value if self.status else None}


@dataclass(frozen=True)
class AthleteStreakView:
    athlete_id: str
    current_streak: int
    state: StreakState
    personal_record: int
    last_updated: datetime
    last_7_days: tuple[DayStatus, ...]

    def to_dict(self) -> dict:
        return {
            "athleteId": self.athlete_id,
            "currentStreak": self.current_streak,
            "state": self.state.value,
            "personalRecord": self.personal_record,
            "lastUpdated": _iso(self.last_updated),
            "last7Days": [d.to_dict() for d in self.last_7_days],
        }


@dataclass(frozen=True)
class StreakHistoryView:
    athlete_id: str
    personal_record: int
    current_streak: int
    previous_streaks: tuple[StreakHistoryEntry, ...]

    def to_dict(self) -> dict:
        return {
            "athleteId": self.athlete_id,
            "personalRecord": self.personal_record,
            "currentStreak": self.current_streak,
            "previousStreaks": [
                {
                    "start": _iso(e.start),
                    "end": _iso(e.end),
                    "durationDays": e.duration_days,
                    "endReason": e.end_reason,
                }
                for e in self.previous_streaks
            ],
        }


class AttendanceQueryProjector:
    """Query Projector: read-side views over attendance facts and streaks.

    Row defaults (no status, zero streak) are applied here and only here, when
    a row's own lookups fail.
    """

    def __init__(
        self,
        store: AttendanceStore,
        tracker: StreakTracker,
        gyms: GymRepository,
        history: Optional[StreakHistoryRecorder] = None,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._tracker = tracker
        self._gyms = gyms
        self._history = history
        self._clock = clock

    def project_day(self, gym_id: str, day) -> GymDayView:
        gym_id = require_non_empty(gym_id, "gymId")
        d = parse_iso_date(day)

        gym = self._gyms.get_by_id(gym_id)
        if not gym:
            raise NotFoundError("Gym not found")

        athletes = [m for m in self._gyms.list_members(gym_id) if m.role == Role.ATHLETE]
        rows = tuple(self._project_row(gym_id, member, d) for member in athletes)
        return GymDayView(day=d, gym=gym, athletes=rows)

    def _project_row(self, gym_id: str, member: Member, day: date) -> AthleteDayRow:
        try:
            today = self._store.find_by_gym_and_athlete_and_day(gym_id, member.user_id, day)
            streak = self._tracker.snapshot(member.user_id)
            latest = self._store.find_latest_for_athlete(member.user_id, on_or_before=day)
        except Exception:
            logger.warning("Degrading attendance row for athlete=%s gym=%s", member.user_id, gym_id, exc_info=True)
            return AthleteDayRow.degraded(member)

        return AthleteDayRow(
            athlete_id=member.user_id,
            name=member.full_name,
            email=member.email,
            status=today.status if today else None,
            current_streak=streak.current_count,
            last_attendance_date=latest.day if latest else None,
        )

    def athlete_streak(self, athlete_id: str, *, today=None) -> AthleteStreakView:
        athlete_id = self._require_athlete(athlete_id)
        end = parse_iso_date(today) if today is not None else self._clock().date()
        start = end - timedelta(days=STREAK_WINDOW_DAYS - 1)

        streak = self._tracker.snapshot(athlete_id)

        by_day: dict[date, AttendanceStatus] = {}
        # Newest update first, so the first row seen for a day wins across gyms.
        for rec in self._store.find_range_for_athlete(athlete_id, start=start, end=end):
            by_day.setdefault(rec.day, rec.status)

        window = tuple(
            DayStatus(day=end - timedelta(days=i), status=by_day.get(end - timedelta(days=i)))
            for i in range(STREAK_WINDOW_DAYS)
        )
        return AthleteStreakView(
            athlete_id=athlete_id,
            current_streak=streak.current_count,
            state=streak.state,
            personal_record=streak.personal_record,
            last_updated=streak.last_updated,
            last_7_days=window,
        )

    def streak_history(self, athlete_id: str) -> StreakHistoryView:
        athlete_id = self._require_athlete(athlete_id)
        streak = self._tracker.snapshot(athlete_id)
        entries = tuple(self._history.list_for_athlete(athlete_id)) if self._history else ()
        return StreakHistoryView(
            athlete_id=athlete_id,
            personal_record=streak.personal_record,
            current_streak=streak.current_count,
            previous_streaks=entries,
        )

    def _require_athlete(self, athlete_id: str) -> str:
        athlete_id = require_non_empty(athlete_id, "athleteId")
        if not self._gyms.get_user(athlete_id):
            raise NotFoundError("Athlete not found")
        return athlete_id

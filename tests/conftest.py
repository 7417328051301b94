from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from src.gym_attendance.gym_attendance.attendance.model import AttendanceRecord
from src.gym_attendance.gym_attendance.container import wire_container
from src.gym_attendance.gym_attendance.core.enums import AttendanceStatus, Role
from src.gym_attendance.gym_attendance.core.exceptions import StorageError
from src.gym_attendance.gym_attendance.gyms.model import Gym, Member
from src.gym_attendance.gym_attendance.streaks.model import Streak, StreakHistoryEntry

GYM = "gym-1"
OTHER_GYM = "gym-2"
COACH = "coach-1"
ADMIN = "admin-1"
ATHLETE_A = "athlete-a"
ATHLETE_B = "athlete-b"
ATHLETE_C = "athlete-c"
OUTSIDER = "athlete-x"


class FixedClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryGyms:
    def __init__(self):
        self.gyms: dict[str, Gym] = {}
        self.members: dict[str, list[Member]] = {}
        self.users: dict[str, Member] = {}

    def add_gym(self, gym_id: str, name: str) -> None:
        self.gyms[gym_id] = Gym(gym_id=gym_id, name=name)
        self.members.setdefault(gym_id, [])

    def add_member(self, gym_id: str, user_id: str, role: Role = Role.ATHLETE, name: Optional[str] = None) -> Member:
        member = self.users.get(user_id) or Member(
            user_id=user_id,
            full_name=name or user_id.title(),
            email=f"{user_id}@example.com",
            role=role,
        )
        self.users[user_id] = member
        self.members.setdefault(gym_id, []).append(member)
        return member

    def get_by_id(self, gym_id: str) -> Optional[Gym]:
        return self.gyms.get(gym_id)

    def list_members(self, gym_id: str):
        return list(self.members.get(gym_id, []))

    def is_member(self, gym_id: str, user_id: str) -> bool:
        return any(m.user_id == user_id for m in self.members.get(gym_id, []))

    def get_user(self, user_id: str) -> Optional[Member]:
        return self.users.get(user_id)


class InMemoryAttendance:
    """Dict keyed by (gym, athlete, day); the lock plays the unique index."""

    def __init__(self):
        self.rows: dict[tuple[str, str, date], AttendanceRecord] = {}
        self.fail_for: set[str] = set()
        self._lock = threading.Lock()
        self._id = 0

    def upsert(self, *, gym_id, athlete_id, day, status, now) -> AttendanceRecord:
        if athlete_id in self.fail_for:
            raise StorageError("simulated write failure")
        with self._lock:
            key = (gym_id, athlete_id, day)
            existing = self.rows.get(key)
            if existing:
                rec = replace(existing, status=status, updated_at=now)
            else:
                self._id += 1
                rec = AttendanceRecord(
                    attendance_id=self._id,
                    gym_id=gym_id,
                    athlete_id=athlete_id,
                    day=day,
                    status=status,
                    created_at=now,
                    updated_at=now,
                )
            self.rows[key] = rec
            return rec

    def find_by_athlete_and_day(self, athlete_id, day):
        found = [r for r in self.rows.values() if r.athlete_id == athlete_id and r.day == day]
        found.sort(key=lambda r: r.updated_at, reverse=True)
        return found[0] if found else None

    def find_by_gym_athlete_and_day(self, gym_id, athlete_id, day):
        if athlete_id in self.fail_for:
            raise StorageError("simulated read failure")
        return self.rows.get((gym_id, athlete_id, day))

    def find_all_by_gym_and_day(self, gym_id, day):
        return sorted(
            (r for r in self.rows.values() if r.gym_id == gym_id and r.day == day),
            key=lambda r: r.athlete_id,
        )

    def find_latest_for_athlete(self, athlete_id, *, on_or_before):
        found = [r for r in self.rows.values() if r.athlete_id == athlete_id and r.day <= on_or_before]
        found.sort(key=lambda r: (r.day, r.updated_at), reverse=True)
        return found[0] if found else None

    def find_range_for_athlete(self, athlete_id, *, start, end):
        found = [r for r in self.rows.values() if r.athlete_id == athlete_id and start <= r.day <= end]
        found.sort(key=lambda r: (r.day, r.updated_at), reverse=True)
        return found

    def delete(self, gym_id, athlete_id, day) -> bool:
        with self._lock:
            return self.rows.pop((gym_id, athlete_id, day), None) is not None


class InMemoryStreaks:
    """Versioned rows with a real compare-and-swap under a lock."""

    def __init__(self):
        self.rows: dict[str, Streak] = {}
        self.fail_for: set[str] = set()
        self.cas_calls = 0
        self._lock = threading.Lock()

    def find_by_athlete(self, athlete_id: str) -> Optional[Streak]:
        if athlete_id in self.fail_for:
            raise StorageError("simulated read failure")
        return self.rows.get(athlete_id)

    def create_if_absent(self, streak: Streak) -> Streak:
        with self._lock:
            return self.rows.setdefault(streak.athlete_id, streak)

    def compare_and_set(self, streak: Streak, *, expected_version: int) -> bool:
        with self._lock:
            self.cas_calls += 1
            stored = self.rows.get(streak.athlete_id)
            if stored is None or stored.version != expected_version:
                return False
            self.rows[streak.athlete_id] = replace(
                streak,
                personal_record=max(stored.personal_record, streak.personal_record),
                version=stored.version + 1,
            )
            return True

    def seed(self, athlete_id: str, *, count: int, state="active", record: Optional[int] = None, now: datetime) -> Streak:
        streak = replace(
            Streak.new(athlete_id, now=now),
            current_count=count,
            state=state,
            personal_record=count if record is None else record,
        )
        self.rows[athlete_id] = streak
        return streak


class InMemoryHistory:
    def __init__(self):
        self.entries: dict[str, StreakHistoryEntry] = {}
        self.fail = False

    def find_open(self, athlete_id):
        if self.fail:
            raise StorageError("simulated history failure")
        return next((e for e in self.entries.values() if e.athlete_id == athlete_id and e.is_open), None)

    def insert(self, entry):
        self.entries[entry.history_id] = entry

    def close(self, history_id, *, end, duration_days, end_reason) -> bool:
        entry = self.entries.get(history_id)
        if not entry or not entry.is_open:
            return False
        self.entries[history_id] = replace(entry, end=end, duration_days=duration_days, end_reason=end_reason)
        return True

    def list_for_athlete(self, athlete_id):
        items = [e for e in self.entries.values() if e.athlete_id == athlete_id]
        items.sort(key=lambda e: e.start, reverse=True)
        return items


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 18, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def gyms_repo() -> InMemoryGyms:
    repo = InMemoryGyms()
    repo.add_gym(GYM, "Demo Boxing Club")
    repo.add_gym(OTHER_GYM, "Other Gym")
    repo.add_member(GYM, ADMIN, Role.ADMIN, "Admin")
    repo.add_member(GYM, COACH, Role.COACH, "Coach")
    repo.add_member(GYM, ATHLETE_A, Role.ATHLETE, "Ana")
    repo.add_member(GYM, ATHLETE_B, Role.ATHLETE, "Bruno")
    repo.add_member(GYM, ATHLETE_C, Role.ATHLETE, "Carla")
    repo.add_member(OTHER_GYM, OUTSIDER, Role.ATHLETE, "Xavi")
    return repo


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def streaks_repo() -> InMemoryStreaks:
    return InMemoryStreaks()


@pytest.fixture
def history_repo() -> InMemoryHistory:
    return InMemoryHistory()


@pytest.fixture
def container(gyms_repo, attendance_repo, streaks_repo, history_repo, clock):
    return wire_container(
        gyms_repo=gyms_repo,
        attendance_repo=attendance_repo,
        streaks_repo=streaks_repo,
        history_repo=history_repo,
        accept_legacy_status=True,
        clock=clock,
    )


@pytest.fixture
def present():
    return AttendanceStatus.PRESENT

from __future__ import annotations

import threading
from datetime import date, datetime

import pytest

from src.gym_attendance.gym_attendance.attendance.model import AttendanceRecord
from src.gym_attendance.gym_attendance.attendance.service import AttendanceStore
from src.gym_attendance.gym_attendance.common.datetime_utils import parse_iso_date
from src.gym_attendance.gym_attendance.core.enums import AttendanceStatus
from src.gym_attendance.gym_attendance.core.exceptions import ValidationError


def test_upsert_creates_then_overwrites_one_row(attendance_repo, clock, fixed_now):
    store = AttendanceStore(attendance_repo, clock=clock)

    first = store.upsert("gym-1", "athlete-a", "2026-02-02", "present")
    clock.advance(minutes=10)
    second = store.upsert("gym-1", "athlete-a", "2026-02-02", "excused")

    assert list(attendance_repo.rows) == [first.dedup_key]
    assert second.attendance_id == first.attendance_id
    assert second.status is AttendanceStatus.EXCUSED
    assert second.created_at == fixed_now
    assert second.updated_at > second.created_at


def test_upsert_is_idempotent(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)

    a = store.upsert("gym-1", "athlete-a", "2026-02-02", "present")
    b = store.upsert("gym-1", "athlete-a", "2026-02-02", "present")

    assert a == b
    assert len(attendance_repo.rows) == 1


def test_same_day_in_two_gyms_is_two_facts(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    store.upsert("gym-1", "athlete-a", "2026-02-02", "present")
    store.upsert("gym-2", "athlete-a", "2026-02-02", "absent")

    assert len(attendance_repo.rows) == 2
    assert store.find_by_gym_and_athlete_and_day("gym-2", "athlete-a", "2026-02-02").status is AttendanceStatus.ABSENT


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2026-02-02", date(2026, 2, 2)),
        ("2026-02-02T23:30:00Z", date(2026, 2, 2)),
        ("2026-02-02T23:30:00-03:00", date(2026, 2, 3)),
        ("2026-02-02T01:00:00+05:00", date(2026, 2, 1)),
        (datetime(2026, 2, 2, 12, 0), date(2026, 2, 2)),
        (date(2026, 2, 2), date(2026, 2, 2)),
    ],
)
def test_days_are_normalized_to_utc_calendar_day(raw, expected):
    assert parse_iso_date(raw) == expected


def test_timestamps_on_same_utc_day_share_a_row(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    store.upsert("gym-1", "athlete-a", "2026-02-02T08:00:00Z", "present")
    store.upsert("gym-1", "athlete-a", "2026-02-02T20:00:00+00:00", "absent")

    assert list(attendance_repo.rows) == [("gym-1", "athlete-a", date(2026, 2, 2))]


@pytest.mark.parametrize("bad", ["", "   ", "02/02/2026", "2026-13-01", "yesterday", None, 20260202])
def test_invalid_day_is_rejected(attendance_repo, clock, bad):
    store = AttendanceStore(attendance_repo, clock=clock)
    with pytest.raises(ValidationError):
        store.upsert("gym-1", "athlete-a", bad, "present")
    assert attendance_repo.rows == {}


@pytest.mark.parametrize("bad", ["late", "", None, "PRESENTE"])
def test_invalid_status_is_rejected(attendance_repo, clock, bad):
    store = AttendanceStore(attendance_repo, clock=clock)
    with pytest.raises(ValidationError):
        store.upsert("gym-1", "athlete-a", "2026-02-02", bad)
    assert attendance_repo.rows == {}


def test_status_is_case_insensitive(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    assert store.upsert("gym-1", "athlete-a", "2026-02-02", "Present").status is AttendanceStatus.PRESENT


@pytest.mark.parametrize(
    "alias,expected",
    [("presente", AttendanceStatus.PRESENT), ("falto", AttendanceStatus.ABSENT), ("permiso", AttendanceStatus.EXCUSED)],
)
def test_legacy_aliases_only_when_enabled(attendance_repo, clock, alias, expected):
    legacy = AttendanceStore(attendance_repo, accept_legacy_status=True, clock=clock)
    strict = AttendanceStore(attendance_repo, clock=clock)

    assert legacy.upsert("gym-1", "athlete-a", "2026-02-02", alias).status is expected
    with pytest.raises(ValidationError):
        strict.upsert("gym-1", "athlete-a", "2026-02-02", alias)


def test_blank_ids_are_rejected(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    with pytest.raises(ValidationError):
        store.upsert(" ", "athlete-a", "2026-02-02", "present")
    with pytest.raises(ValidationError):
        store.upsert("gym-1", None, "2026-02-02", "present")


def test_record_refuses_datetime_day(fixed_now):
    with pytest.raises(TypeError):
        AttendanceRecord(
            gym_id="gym-1",
            athlete_id="athlete-a",
            day=fixed_now,
            status=AttendanceStatus.PRESENT,
            created_at=fixed_now,
            updated_at=fixed_now,
        )


def test_concurrent_upserts_leave_one_row(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    barrier = threading.Barrier(2)
    commit_order = []
    original_upsert = attendance_repo.upsert

    def recording_upsert(**kwargs):
        rec = original_upsert(**kwargs)
        commit_order.append(rec.attendance_id)
        return rec

    attendance_repo.upsert = recording_upsert

    def write(status):
        barrier.wait()
        store.upsert("gym-1", "athlete-a", "2026-02-02", status)

    threads = [threading.Thread(target=write, args=(s,)) for s in ("excused", "present")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(attendance_repo.rows) == 1
    assert len(commit_order) == 2
    assert len(set(commit_order)) == 1
    stored = attendance_repo.rows[("gym-1", "athlete-a", date(2026, 2, 2))]
    assert stored.status in (AttendanceStatus.EXCUSED, AttendanceStatus.PRESENT)


def test_finders(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    store.upsert("gym-1", "athlete-a", "2026-01-30", "present")
    store.upsert("gym-1", "athlete-a", "2026-02-01", "excused")
    store.upsert("gym-1", "athlete-b", "2026-02-01", "absent")

    assert store.find_by_athlete_and_day("athlete-a", "2026-02-01").status is AttendanceStatus.EXCUSED
    assert store.find_by_athlete_and_day("athlete-a", "2026-01-31") is None
    assert [r.athlete_id for r in store.find_all_by_gym_and_day("gym-1", "2026-02-01")] == ["athlete-a", "athlete-b"]
    assert store.find_latest_for_athlete("athlete-a", on_or_before="2026-01-31").day == date(2026, 1, 30)
    assert [r.day for r in store.find_range_for_athlete("athlete-a", start="2026-01-29", end="2026-02-02")] == [
        date(2026, 2, 1),
        date(2026, 1, 30),
    ]


def test_purge_removes_fact(attendance_repo, clock):
    store = AttendanceStore(attendance_repo, clock=clock)
    store.upsert("gym-1", "athlete-a", "2026-02-02", "present")

    assert store.purge("gym-1", "athlete-a", "2026-02-02") is True
    assert store.purge("gym-1", "athlete-a", "2026-02-02") is False
    assert store.find_by_gym_and_athlete_and_day("gym-1", "athlete-a", "2026-02-02") is None

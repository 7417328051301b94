from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import StorageError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, gym_id, athlete_id, day, status, created_at, updated_at"


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(
        self,
        *,
        gym_id: str,
        athlete_id: str,
        day: date,
        status: AttendanceStatus,
        now: datetime,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            # Single statement against uq_attendance_dedup; concurrent callers
            # converge on one row, last committed status wins.
            cur.execute(
                """
                INSERT INTO attendance_records(gym_id, athlete_id, day, status, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status), updated_at=VALUES(updated_at)
                """,
                (gym_id, athlete_id, day, status.value, now, now),
            )
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE gym_id=%s AND athlete_id=%s AND day=%s
                """,
                (gym_id, athlete_id, day),
            )
            row = fetchone(cur)
            if not row:
                raise StorageError("Attendance row vanished after upsert")
            return self._to_record(row)

    def find_by_athlete_and_day(self, athlete_id: str, day: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE athlete_id=%s AND day=%s
                ORDER BY updated_at DESC
                LIMIT 1
                """,
                (athlete_id, day),
            )
            row = fetchone(cur)
            return self._to_record(row) if row else None

    def find_by_gym_athlete_and_day(self, gym_id: str, athlete_id: str, day: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE gym_id=%s AND athlete_id=%s AND day=%s
                """,
                (gym_id, athlete_id, day),
            )
            row = fetchone(cur)
            return self._to_record(row) if row else None

    def find_all_by_gym_and_day(self, gym_id: str, day: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE gym_id=%s AND day=%s
                ORDER BY athlete_id ASC
                """,
                (gym_id, day),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def find_latest_for_athlete(self, athlete_id: str, *, on_or_before: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE athlete_id=%s AND day<=%s
                ORDER BY day DESC, updated_at DESC
                LIMIT 1
                """,
                (athlete_id, on_or_before),
            )
            row = fetchone(cur)
            return self._to_record(row) if row else None

    def find_range_for_athlete(self, athlete_id: str, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE athlete_id=%s AND day BETWEEN %s AND %s
                ORDER BY day DESC, updated_at DESC
                """,
                (athlete_id, start, end),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def delete(self, gym_id: str, athlete_id: str, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_records WHERE gym_id=%s AND athlete_id=%s AND day=%s",
                (gym_id, athlete_id, day),
            )
            return cur.rowcount > 0

    @staticmethod
    def _to_record(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            attendance_id=int(r["attendance_id"]),
            gym_id=r["gym_id"],
            athlete_id=r["athlete_id"],
            day=r["day"],
            status=AttendanceStatus(r["status"]),
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )

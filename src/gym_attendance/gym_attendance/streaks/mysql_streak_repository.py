from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import StreakState
from ..core.exceptions import StorageError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Streak, StreakHistoryEntry
from .repository import StreakHistoryRepository, StreakRepository

_STREAK_COLUMNS = "streak_id, athlete_id, current_count, state, personal_record, last_updated, version, created_at"
_HISTORY_COLUMNS = "history_id, athlete_id, streak_id, start_at, end_at, duration_days, end_reason, created_at"


class MySQLStreakRepository(StreakRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_athlete(self, athlete_id: str) -> Optional[Streak]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STREAK_COLUMNS} FROM streaks WHERE athlete_id=%s",
                (athlete_id,),
            )
            row = fetchone(cur)
            return self._to_streak(row) if row else None

    def create_if_absent(self, streak: Streak) -> Streak:
        with db_cursor(self._conn_factory) as (_, cur):
            # No-op update on uq_streaks_athlete; FK violations still raise.
            cur.execute(
                """
                INSERT INTO streaks(streak_id, athlete_id, current_count, state, personal_record, last_updated, version, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE streak_id=streak_id
                """,
                (
                    streak.streak_id,
                    streak.athlete_id,
                    streak.current_count,
                    streak.state.value,
                    streak.personal_record,
                    streak.last_updated,
                    streak.version,
                    streak.created_at or streak.last_updated,
                ),
            )
            cur.execute(
                f"SELECT {_STREAK_COLUMNS} FROM streaks WHERE athlete_id=%s",
                (streak.athlete_id,),
            )
            row = fetchone(cur)
            if not row:
                raise StorageError("Streak row vanished after insert")
            return self._to_streak(row)

    def compare_and_set(self, streak: Streak, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE streaks
                SET current_count=%s,
                    state=%s,
                    personal_record=GREATEST(personal_record, %s),
                    last_updated=%s,
                    version=version + 1
                WHERE streak_id=%s AND version=%s
                """,
                (
                    streak.current_count,
                    streak.state.value,
                    streak.personal_record,
                    streak.last_updated,
                    streak.streak_id,
                    int(expected_version),
                ),
            )
            return cur.rowcount == 1

    @staticmethod
    def _to_streak(r: dict) -> Streak:
        return Streak(
            streak_id=r["streak_id"],
            athlete_id=r["athlete_id"],
            current_count=int(r["current_count"]),
            state=StreakState(r["state"]),
            personal_record=int(r["personal_record"]),
            last_updated=r["last_updated"],
            version=int(r["version"]),
            created_at=r.get("created_at"),
        )


class MySQLStreakHistoryRepository(StreakHistoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_open(self, athlete_id: str) -> Optional[StreakHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_HISTORY_COLUMNS}
                FROM streak_history
                WHERE athlete_id=%s AND end_at IS NULL
                ORDER BY start_at DESC
                LIMIT 1
                """,
                (athlete_id,),
            )
            row = fetchone(cur)
            return self._to_entry(row) if row else None

    def insert(self, entry: StreakHistoryEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO streak_history(history_id, athlete_id, streak_id, start_at, end_at, duration_days, end_reason, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.history_id,
                    entry.athlete_id,
                    entry.streak_id,
                    entry.start,
                    entry.end,
                    int(entry.duration_days),
                    entry.end_reason,
                    entry.created_at or entry.start,
                ),
            )

    def close(self, history_id: str, *, end: datetime, duration_days: int, end_reason: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE streak_history
                SET end_at=%s, duration_days=%s, end_reason=%s
                WHERE history_id=%s AND end_at IS NULL
                """,
                (end, int(duration_days), end_reason, history_id),
            )
            return cur.rowcount > 0

    def list_for_athlete(self, athlete_id: str) -> Sequence[StreakHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_HISTORY_COLUMNS}
                FROM streak_history
                WHERE athlete_id=%s
                ORDER BY start_at DESC
                """,
                (athlete_id,),
            )
            return [self._to_entry(r) for r in fetchall(cur)]

    @staticmethod
    def _to_entry(r: dict) -> StreakHistoryEntry:
        return StreakHistoryEntry(
            history_id=r["history_id"],
            athlete_id=r["athlete_id"],
            streak_id=r["streak_id"],
            start=r["start_at"],
            end=r.get("end_at"),
            duration_days=int(r.get("duration_days") or 0),
            end_reason=r.get("end_reason"),
            created_at=r.get("created_at"),
        )

from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Gym, Member
from .repository import GymRepository


class MySQLGymRepository(GymRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, gym_id: str) -> Optional[Gym]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT gym_id, name FROM gyms WHERE gym_id=%s", (gym_id,))
            row = fetchone(cur)
            if not row:
                return None
            return Gym(gym_id=row["gym_id"], name=row["name"])

    def list_members(self, gym_id: str) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name, u.email, u.role
                FROM gym_members gm
                JOIN users u ON u.user_id = gm.user_id
                WHERE gm.gym_id=%s
                ORDER BY u.full_name ASC
                """,
                (gym_id,),
            )
            return [self._to_member(r) for r in fetchall(cur)]

    def is_member(self, gym_id: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM gym_members WHERE gym_id=%s AND user_id=%s",
                (gym_id, user_id),
            )
            return fetchone(cur) is not None

    def get_user(self, user_id: str) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, full_name, email, role FROM users WHERE user_id=%s",
                (user_id,),
            )
            row = fetchone(cur)
            return self._to_member(row) if row else None

    @staticmethod
    def _to_member(r: dict) -> Member:
        return Member(
            user_id=r["user_id"],
            full_name=r["full_name"],
            email=r["email"],
            role=Role(r["role"]),
        )

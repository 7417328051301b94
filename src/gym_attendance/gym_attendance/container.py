from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.orchestrator import AttendanceOrchestrator
from .attendance.projector import AttendanceQueryProjector
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceStore
from .common.datetime_utils import now_utc
from .core.constants import DEFAULT_STREAK_MAX_ATTEMPTS
from .database.connection import DBConfig, DatabaseConnection
from .gyms.mysql_gym_repository import MySQLGymRepository
from .gyms.repository import GymRepository
from .streaks.history import StreakHistoryRecorder
from .streaks.mysql_streak_repository import MySQLStreakHistoryRepository, MySQLStreakRepository
from .streaks.repository import StreakHistoryRepository, StreakRepository
from .streaks.service import StreakTracker


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    gyms_repo: GymRepository
    attendance_repo: AttendanceRepository
    streaks_repo: StreakRepository
    history_repo: StreakHistoryRepository

    attendance_store: AttendanceStore
    streak_tracker: StreakTracker
    history_recorder: StreakHistoryRecorder
    orchestrator: AttendanceOrchestrator
    projector: AttendanceQueryProjector


def wire_container(
    *,
    gyms_repo: GymRepository,
    attendance_repo: AttendanceRepository,
    streaks_repo: StreakRepository,
    history_repo: StreakHistoryRepository,
    conn: Optional[DatabaseConnection] = None,
    streak_max_attempts: int = DEFAULT_STREAK_MAX_ATTEMPTS,
    accept_legacy_status: bool = False,
    clock: Callable[[], datetime] = now_utc,
) -> Container:
    """Build services over any repository implementations (MySQL or in-memory)."""

    attendance_store = AttendanceStore(attendance_repo, accept_legacy_status=accept_legacy_status, clock=clock)
    streak_tracker = StreakTracker(streaks_repo, max_attempts=streak_max_attempts, clock=clock)
    history_recorder = StreakHistoryRecorder(history_repo, clock=clock)
    orchestrator = AttendanceOrchestrator(attendance_store, streak_tracker, gyms_repo, history_recorder)
    projector = AttendanceQueryProjector(attendance_store, streak_tracker, gyms_repo, history_recorder, clock=clock)

    return Container(
        conn=conn,
        gyms_repo=gyms_repo,
        attendance_repo=attendance_repo,
        streaks_repo=streaks_repo,
        history_repo=history_repo,
        attendance_store=attendance_store,
        streak_tracker=streak_tracker,
        history_recorder=history_recorder,
        orchestrator=orchestrator,
        projector=projector,
    )


def build_container(
    *,
    db_config: dict,
    streak_max_attempts: int = DEFAULT_STREAK_MAX_ATTEMPTS,
    accept_legacy_status: bool = False,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        conn=conn,
        gyms_repo=MySQLGymRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        streaks_repo=MySQLStreakRepository(conn),
        history_repo=MySQLStreakHistoryRepository(conn),
        streak_max_attempts=streak_max_attempts,
        accept_legacy_status=accept_legacy_status,
    )

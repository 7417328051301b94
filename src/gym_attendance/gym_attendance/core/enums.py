from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles as resolved by the upstream identity provider."""

    ADMIN = "admin"
    COACH = "coach"
    ATHLETE = "athlete"


class AttendanceStatus(str, Enum):
    """Closed wire vocabulary for one attendance fact."""

    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"


class StreakState(str, Enum):
    ACTIVE = "active"
    FROZEN = "frozen"


class StreakAction(str, Enum):
    """Effect reported for one transition (or one failed batch entry)."""

    INCREMENTED = "incremented"
    UNFROZEN = "unfrozen"
    RESET = "reset"
    FROZEN = "frozen"
    NO_CHANGE = "no_change"
    ERROR = "error"


class HistoryEndReason(str, Enum):
    RESET = "reset"
    CLOSED = "closed"

"""Pure streak state machine.

The next state and action depend only on (state, status); the count is
incremented, kept or reset, never inspected. ``now`` is stamped onto the
result and has no influence on it.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Optional

from ..core.enums import AttendanceStatus, StreakAction, StreakState
from .model import Streak, StreakDelta


class CountOp(str, Enum):
    INCREMENT = "increment"
    KEEP = "keep"
    RESET = "reset"


TRANSITIONS: dict[tuple[StreakState, AttendanceStatus], tuple[StreakState, CountOp, StreakAction]] = {
    (StreakState.ACTIVE, AttendanceStatus.PRESENT): (StreakState.ACTIVE, CountOp.INCREMENT, StreakAction.INCREMENTED),
    (StreakState.FROZEN, AttendanceStatus.PRESENT): (StreakState.ACTIVE, CountOp.KEEP, StreakAction.UNFROZEN),
    (StreakState.ACTIVE, AttendanceStatus.ABSENT): (StreakState.ACTIVE, CountOp.RESET, StreakAction.RESET),
    (StreakState.FROZEN, AttendanceStatus.ABSENT): (StreakState.ACTIVE, CountOp.RESET, StreakAction.RESET),
    (StreakState.ACTIVE, AttendanceStatus.EXCUSED): (StreakState.FROZEN, CountOp.KEEP, StreakAction.FROZEN),
    (StreakState.FROZEN, AttendanceStatus.EXCUSED): (StreakState.FROZEN, CountOp.KEEP, StreakAction.NO_CHANGE),
}


def _next_count(count: int, op: CountOp) -> int:
    if op is CountOp.INCREMENT:
        return count + 1
    if op is CountOp.RESET:
        return 0
    return count


def apply_transition(streak: Streak, status: AttendanceStatus, *, now: datetime) -> tuple[Streak, StreakDelta]:
    new_state, op, action = TRANSITIONS[(streak.state, AttendanceStatus(status))]
    new_count = _next_count(streak.current_count, op)

    updated = replace(
        streak,
        current_count=new_count,
        state=new_state,
        personal_record=max(streak.personal_record, new_count),
        last_updated=now,
    )
    delta = StreakDelta(
        athlete_id=streak.athlete_id,
        previous_count=streak.current_count,
        new_count=new_count,
        action=action,
    )
    return updated, delta


class HistoryEffect(str, Enum):
    OPEN = "open"
    CLOSE = "close"


def history_effect(delta: StreakDelta) -> Optional[HistoryEffect]:
    """Ledger rule: a run opens on the first increment from zero, closes on a reset of a non-empty run."""
    if delta.action is StreakAction.INCREMENTED and delta.previous_count == 0:
        return HistoryEffect.OPEN
    if delta.action is StreakAction.RESET and delta.previous_count > 0:
        return HistoryEffect.CLOSE
    return None

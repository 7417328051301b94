from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import StreakAction, StreakState


@dataclass(frozen=True)
class Streak:
    """Domain value: an athlete's streak as last committed.

    Immutable; transitions build a new value (see ``transitions.apply_transition``)
    and the repository persists it with a compare-and-swap on ``version``.
    """

    streak_id: str
    athlete_id: str
    current_count: int
    state: StreakState
    personal_record: int
    last_updated: datetime
    version: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.state, StreakState):
            object.__setattr__(self, "state", StreakState(self.state))
        if self.current_count < 0:
            raise ValueError("current_count must be >= 0")
        if self.personal_record < self.current_count:
            raise ValueError("personal_record must be >= current_count")

    @classmethod
    def new(cls, athlete_id: str, *, now: datetime) -> "Streak":
        return cls(
            streak_id=str(uuid.uuid4()),
            athlete_id=athlete_id,
            current_count=0,
            state=StreakState.ACTIVE,
            personal_record=0,
            last_updated=now,
            version=0,
            created_at=now,
        )


@dataclass(frozen=True)
class StreakDelta:
    """Effect descriptor of one transition, as reported per batch entry."""

    athlete_id: str
    previous_count: int
    new_count: int
    action: StreakAction

    @classmethod
    def error(cls, athlete_id: str) -> "StreakDelta":
        # Zeros, never None: error rows keep the numeric shape of the others.
        return cls(athlete_id=athlete_id, previous_count=0, new_count=0, action=StreakAction.ERROR)

    def to_dict(self) -> dict:
        return {
            "athleteId": self.athlete_id,
            "previousStreak": self.previous_count,
            "currentStreak": self.new_count,
            "action": self.action.value,
        }


@dataclass(frozen=True)
class StreakHistoryEntry:
    """Append-only ledger row for one run of consecutive attendance."""

    history_id: str
    athlete_id: str
    streak_id: str
    start: datetime
    end: Optional[datetime] = None
    duration_days: int = 0
    end_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    @classmethod
    def open(cls, *, athlete_id: str, streak_id: str, now: datetime) -> "StreakHistoryEntry":
        return cls(
            history_id=str(uuid.uuid4()),
            athlete_id=athlete_id,
            streak_id=streak_id,
            start=now,
            created_at=now,
        )

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Gym, Member


class GymRepository(Protocol):
    """Roster provider consumed by the attendance engine.

    Gym/user registration lives elsewhere; the engine only reads.
    """

    def get_by_id(self, gym_id: str) -> Optional[Gym]:
        raise NotImplementedError

    def list_members(self, gym_id: str) -> Sequence[Member]:
        raise NotImplementedError

    def is_member(self, gym_id: str, user_id: str) -> bool:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[Member]:
        """Directory lookup independent of any gym."""
        raise NotImplementedError

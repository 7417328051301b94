from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Gym:
    gym_id: str
    name: str


@dataclass(frozen=True)
class Member:
    """A user as listed on a gym roster."""

    user_id: str
    full_name: str
    email: str
    role: Role

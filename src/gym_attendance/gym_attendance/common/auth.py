"""Identity forwarded by the upstream identity provider.

The engine does no authentication of its own. The gateway in front of it
verifies the session and passes the caller's id and role as headers; these
helpers only read them.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError

REQUESTER_ID_HEADER = "X-Requester-Id"
REQUESTER_ROLE_HEADER = "X-Requester-Role"

STAFF_ROLES = frozenset({Role.ADMIN, Role.COACH})


@dataclass(frozen=True)
class Requester:
    user_id: str
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def requester_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user_id = (request.headers.get(REQUESTER_ID_HEADER) or "").strip()
        role_raw = (request.headers.get(REQUESTER_ROLE_HEADER) or "").strip().lower()
        if not user_id or not role_raw:
            raise AuthenticationError("Missing requester identity")
        try:
            role = Role(role_raw)
        except ValueError:
            raise AuthenticationError(f"Unknown requester role: {role_raw}")
        g.requester = Requester(user_id=user_id, role=role)
        return view(*args, **kwargs)

    return wrapper


def current_requester() -> Requester:
    requester = getattr(g, "requester", None)
    if requester is None:
        raise AuthenticationError("Missing requester identity")
    return requester


def require_roles(*roles: Role) -> Requester:
    requester = current_requester()
    if requester.role not in roles:
        raise AuthorizationError("You do not have permission for this action")
    return requester

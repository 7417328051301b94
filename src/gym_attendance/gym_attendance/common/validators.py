from __future__ import annotations

from ..core.constants import LEGACY_STATUS_ALIASES
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


def require_non_empty(value, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def parse_status(value, *, accept_legacy: bool = False) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    raw = require_non_empty(value, "status").lower()
    if accept_legacy:
        raw = LEGACY_STATUS_ALIASES.get(raw, raw)
    try:
        return AttendanceStatus(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Invalid status {value!r}; expected one of: {allowed}")

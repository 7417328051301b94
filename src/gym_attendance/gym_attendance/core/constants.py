"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_STREAK_MAX_ATTEMPTS = 5
STREAK_WINDOW_DAYS = 7

BATCH_SUCCESS_MESSAGE = "Attendance updated successfully"

# Spanish literals used by the first mobile clients; accepted on input only.
LEGACY_STATUS_ALIASES = {
    "presente": "present",
    "falto": "absent",
    "permiso": "excused",
}

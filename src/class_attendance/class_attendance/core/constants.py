"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ELIGIBILITY_THRESHOLD = 75.0
NO_HISTORY_PERCENTAGE = 100.0

BULK_BATCH_SIZE = 20

MIN_PASSWORD_LENGTH = 6
RESET_TOKEN_TTL_MINUTES = 60

MIN_YEAR = 1
MAX_YEAR = 4

DEFAULT_AVATAR_URL = "/default/avatar.png"
AVATAR_MAX_BYTES = 5_000_000
AVATAR_EXTENSIONS = frozenset({"jpg", "jpeg", "png"})

DASHBOARD_EVENT = "dashboard_update"

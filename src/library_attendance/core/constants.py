"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500

DATE_KEY_FORMAT = "%Y-%m-%d"

ACTIVE_SUFFIX = " (Active)"
JUST_NOW_LABEL = "Just Now (Active)"
INVALID_TIMESTAMPS_LABEL = "Invalid Timestamps"

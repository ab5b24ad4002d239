"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30
MIN_PASSWORD_LENGTH = 6

# 0 = Monday ... 6 = Sunday (datetime.weekday()).
WEEK_STARTS_ON = 6

TIME_FORMAT = "%H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

# Comment line sent on an idle change stream so proxies keep it open.
CHANGE_STREAM_HEARTBEAT_SECONDS = 15.0

"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import datetime

MIN_SESSION_MINUTES = 1
MAX_SESSION_MINUTES = 1440

DEFAULT_SESSION_TTL_SECONDS = 60 * 60 * 24 * 7
DEFAULT_SESSION_COOKIE_NAME = "fc_session"
SESSION_TOKEN_ALGORITHM = "HS256"

DEFAULT_STATS_DAYS = 30
DEFAULT_SESSION_LIST_LIMIT = 100
DEFAULT_AUDIT_LIMIT = 100
MAX_AUDIT_LIMIT = 500
DEFAULT_OFFLINE_SYNC_MAX_ITEMS = 500

MIN_PASSWORD_LENGTH = 8
QR_CODE_SUFFIX_BYTES = 6

# MySQL DATETIME range
MIN_STORABLE_DATETIME = datetime(1000, 1, 1)
MAX_STORABLE_DATETIME = datetime(9999, 12, 31, 23, 59, 59)

# ip_address columns are VARCHAR(64)
MAX_IP_ADDRESS_LENGTH = 64

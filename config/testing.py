from .config import DB_CONFIG  # noqa: F401

SECRET_KEY = "test-secret"
AUTH_TOKEN_SECRET = "test-token-secret"
AUTH_COOKIE_NAME = "fc_session"
AUTH_TOKEN_TTL_SECONDS = 3600
AUTH_COOKIE_SECURE = False

OFFLINE_SYNC_MAX_ITEMS = 50
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False

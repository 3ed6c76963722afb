from .config import Config, DB_CONFIG, env_flag  # noqa: F401

SECRET_KEY = Config.SECRET_KEY
AUTH_TOKEN_SECRET = Config.AUTH_TOKEN_SECRET
AUTH_COOKIE_NAME = Config.AUTH_COOKIE_NAME
AUTH_TOKEN_TTL_SECONDS = Config.AUTH_TOKEN_TTL_SECONDS
AUTH_COOKIE_SECURE = Config.AUTH_COOKIE_SECURE

OFFLINE_SYNC_MAX_ITEMS = Config.OFFLINE_SYNC_MAX_ITEMS
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also create the demo accounts on startup
AUTO_SEED_DB = Config.AUTO_SEED_DB

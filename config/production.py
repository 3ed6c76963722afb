import os

from .config import Config, DB_CONFIG, env_flag  # noqa: F401

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
AUTH_TOKEN_SECRET = os.getenv("AUTH_TOKEN_SECRET", SECRET_KEY)
AUTH_COOKIE_NAME = Config.AUTH_COOKIE_NAME
AUTH_TOKEN_TTL_SECONDS = Config.AUTH_TOKEN_TTL_SECONDS
# cookies only travel over https in production unless explicitly disabled
AUTH_COOKIE_SECURE = env_flag("AUTH_COOKIE_SECURE", "1")

OFFLINE_SYNC_MAX_ITEMS = Config.OFFLINE_SYNC_MAX_ITEMS
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

DEBUG = False

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = False

"""Settings shared by every environment, read from environment variables."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "fellowship-dev-secret"

    # Session cookie
    AUTH_TOKEN_SECRET = os.environ.get("AUTH_TOKEN_SECRET") or SECRET_KEY
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "fc_session")
    AUTH_TOKEN_TTL_SECONDS = int(os.environ.get("AUTH_TOKEN_TTL_SECONDS", str(7 * 24 * 3600)))
    AUTH_COOKIE_SECURE = env_flag("AUTH_COOKIE_SECURE")

    # DB
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "fellowship_db")

    OFFLINE_SYNC_MAX_ITEMS = int(os.environ.get("OFFLINE_SYNC_MAX_ITEMS", "500"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Dev helpers
    AUTO_INIT_DB = env_flag("AUTO_INIT_DB")
    AUTO_SEED_DB = env_flag("AUTO_SEED_DB")


DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .auth.controller import register as register_auth
from .common.responses import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_OFFLINE_SYNC_MAX_ITEMS, DEFAULT_SESSION_COOKIE_NAME, DEFAULT_SESSION_TTL_SECONDS
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    A prebuilt ``container`` skips database bootstrap entirely (used by tests).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["AUTH_COOKIE_NAME"] = getattr(settings, "AUTH_COOKIE_NAME", DEFAULT_SESSION_COOKIE_NAME)
    app.config["AUTH_COOKIE_SECURE"] = bool(getattr(settings, "AUTH_COOKIE_SECURE", False))
    app.config["OFFLINE_SYNC_MAX_ITEMS"] = int(
        getattr(settings, "OFFLINE_SYNC_MAX_ITEMS", DEFAULT_OFFLINE_SYNC_MAX_ITEMS)
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
            logger.info("demo accounts ready")

        container = build_container(
            db_config=db_config,
            auth_secret=getattr(settings, "AUTH_TOKEN_SECRET"),
            token_ttl_seconds=int(getattr(settings, "AUTH_TOKEN_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS)),
        )
        atexit.register(container.close)

    app.extensions["fellowship_connect"] = container

    register_error_handlers(app)
    register_auth(app, container)
    register_users(app, container)
    register_attendance(app, container)
    register_audit(app, container)

    return app

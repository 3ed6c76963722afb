"""JSON envelope shared by every endpoint.

Success: ``{"success": true, ...payload}``; failure:
``{"success": false, "error": "..."}``.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def ok(status: int = 200, **payload):
    return jsonify({"success": True, **payload}), status


def fail(message: str, status: int, **extra):
    return jsonify({"success": False, "error": message, **extra}), status


def status_for(error: DomainError) -> int:
    for error_cls, status in STATUS_BY_ERROR:
        if isinstance(error, error_cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        logger.info("request rejected (%s): %s", status, e)
        if isinstance(e, ValidationError) and e.details:
            return fail(str(e), status, details=e.details)
        return fail(str(e), status)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error")
        return fail("Internal server error", 500)

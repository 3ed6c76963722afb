from __future__ import annotations

from flask import Flask, request

from ..auth.gate import build_guard
from ..common.responses import ok
from ..common.validators import parse_limit, require_choice
from ..container import Container
from ..core.constants import DEFAULT_AUDIT_LIMIT, MAX_AUDIT_LIMIT
from ..core.enums import Action
from .model import AuditAction


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.authenticator)

    @app.route("/admin/audit-logs", methods=["GET"], endpoint="audit_logs")
    @guard(Action.VIEW_AUDIT_LOGS)
    def audit_logs():
        limit = parse_limit(request.args.get("limit"), default=DEFAULT_AUDIT_LIMIT, maximum=MAX_AUDIT_LIMIT)
        raw_action = request.args.get("action")
        action = require_choice(raw_action, "action", AuditAction) if raw_action else None
        logs = container.audit_service.list_recent(limit=limit, action=action)
        return ok(logs=[log.to_public() for log in logs])

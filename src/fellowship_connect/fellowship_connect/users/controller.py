from __future__ import annotations

from flask import Flask, request

from ..auth.gate import build_guard, current_user
from ..common.request_utils import client_ip, json_body
from ..common.responses import ok
from ..common.validators import parse_limit, require_bool, require_choice, require_object
from ..container import Container
from ..core.enums import Action, Role


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.authenticator)
    users = container.user_service

    @app.route("/users", methods=["GET"], endpoint="users_list")
    @guard(Action.MANAGE_USERS)
    def list_users():
        limit = parse_limit(request.args.get("limit"), default=200, maximum=1000)
        return ok(users=[u.to_public() for u in users.list_users(limit=limit)])

    @app.route("/users", methods=["POST"], endpoint="users_create")
    @guard(Action.MANAGE_USERS)
    def create_user():
        data = require_object(json_body())
        caller = current_user()
        user = users.create_account(
            current_role=caller.role,
            current_uid=caller.uid,
            email=data.get("email"),
            full_name=data.get("fullName"),
            password=data.get("password"),
            role=require_choice(data.get("role", Role.MEMBER.value), "role", Role),
            ip_address=client_ip(),
        )
        return ok(201, user=user.to_public())

    @app.route("/users/<uid>/status", methods=["POST"], endpoint="users_set_status")
    @guard(Action.MANAGE_USERS)
    def set_status(uid: str):
        data = require_object(json_body())
        caller = current_user()
        user = users.set_active(
            current_role=caller.role,
            current_uid=caller.uid,
            uid=uid,
            is_active=require_bool(data.get("active"), "active"),
            ip_address=client_ip(),
        )
        return ok(user=user.to_public())

from __future__ import annotations

from flask import Flask, current_app

from ..common.request_utils import client_ip, json_body
from ..common.responses import ok
from ..common.validators import require_object
from ..container import Container
from .gate import build_guard, cookie_name, current_user


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.authenticator)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return ok(status="ok")

    @app.route("/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = require_object(json_body())
        user = container.auth_service.authenticate(
            data.get("email"),
            data.get("password"),
            ip_address=client_ip(),
        )
        token = container.tokens.issue(user)

        resp, status = ok(user=user.to_public())
        resp.set_cookie(
            cookie_name(),
            token,
            max_age=container.tokens.ttl_seconds,
            httponly=True,
            secure=bool(current_app.config.get("AUTH_COOKIE_SECURE", False)),
            samesite="Strict",
            path="/",
        )
        return resp, status

    @app.route("/auth/logout", methods=["POST"], endpoint="auth_logout")
    @guard()
    def logout():
        container.auth_service.logout(current_user().uid, ip_address=client_ip())
        resp, status = ok(message="Logged out")
        resp.delete_cookie(cookie_name(), path="/")
        return resp, status

    @app.route("/auth/me", methods=["GET"], endpoint="auth_me")
    @guard()
    def me():
        profile = container.auth_service.get_profile(current_user().uid)
        return ok(user=profile.to_public())

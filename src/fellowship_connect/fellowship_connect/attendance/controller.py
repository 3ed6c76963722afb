from __future__ import annotations

import io

from flask import Flask, current_app, request, send_file

from ..auth.gate import build_guard, current_user, require_permission
from ..common.datetime_utils import parse_iso_datetime, utc_now
from ..common.request_utils import client_ip, json_body
from ..common.responses import ok
from ..common.validators import parse_limit
from ..container import Container
from ..core.constants import DEFAULT_OFFLINE_SYNC_MAX_ITEMS, DEFAULT_SESSION_LIST_LIMIT
from ..core.enums import Action
from ..core.policy import is_allowed
from .schemas import CheckInInput, CreateSessionInput, parse_offline_items


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.authenticator)
    sessions = container.session_service
    checkins = container.checkin_service
    reports = container.report_service

    @app.route("/attendance", methods=["POST"], endpoint="attendance_create_session")
    @guard(Action.CREATE_SESSION)
    def create_session():
        data = CreateSessionInput.from_payload(json_body())
        user = current_user()
        session = sessions.create_session(
            name=data.name,
            location=data.location,
            duration_minutes=data.duration_minutes,
            creator_id=user.uid,
            ip_address=client_ip(),
        )
        return ok(201, sessionId=session.session_id, session=session.to_public(utc_now()))

    @app.route("/attendance", methods=["GET"], endpoint="attendance_list_sessions")
    @guard(Action.LIST_SESSIONS)
    def list_sessions():
        limit = parse_limit(request.args.get("limit"), default=DEFAULT_SESSION_LIST_LIMIT, maximum=500)
        created_by = current_user().uid if request.args.get("mine") in {"1", "true"} else None
        now = utc_now()
        items = sessions.list_sessions(created_by=created_by, limit=limit)
        return ok(sessions=[s.to_public(now) for s in items])

    @app.route("/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @guard(Action.CHECK_IN)
    def check_in():
        data = CheckInInput.from_payload(json_body())
        user = current_user()
        if data.user_id and data.user_id != user.uid:
            record = checkins.check_in_member(
                staff_id=user.uid,
                staff_role=user.role,
                user_id=data.user_id,
                session_id=data.session_id,
                qr_code_data=data.qr_code_data,
                method=data.method,
                ip_address=client_ip(),
            )
        else:
            record = checkins.check_in(
                user_id=user.uid,
                session_id=data.session_id,
                qr_code_data=data.qr_code_data,
                ip_address=client_ip(),
            )
        return ok(201, message="Check-in recorded", record=record.to_public())

    @app.route("/attendance/sessions/<session_id>", methods=["GET"], endpoint="attendance_session_qr")
    @guard(Action.VIEW_QR)
    def session_qr(session_id: str):
        payload = sessions.generate_qr_code(session_id, requested_by=current_user().uid, ip_address=client_ip())
        return ok(**payload)

    @app.route("/attendance/sessions/<session_id>", methods=["POST"], endpoint="attendance_close_session")
    @guard(Action.CLOSE_SESSION)
    def close_session(session_id: str):
        session = sessions.close_session(session_id, closed_by=current_user().uid, ip_address=client_ip())
        return ok(message="Session closed", session=session.to_public(utc_now()))

    @app.route("/attendance/sessions/<session_id>/qr.png", methods=["GET"], endpoint="attendance_session_qr_image")
    @guard(Action.VIEW_QR)
    def session_qr_image(session_id: str):
        png = sessions.render_qr_code(session_id)
        return send_file(io.BytesIO(png), mimetype="image/png", download_name=f"session-{session_id}.png")

    @app.route("/attendance/sessions/<session_id>/report", methods=["GET"], endpoint="attendance_session_report")
    @guard(Action.SESSION_REPORT)
    def session_report(session_id: str):
        return ok(**reports.session_report(session_id))

    @app.route("/attendance/export/<session_id>", methods=["GET"], endpoint="attendance_export")
    @guard(Action.EXPORT_ATTENDANCE)
    def export_attendance(session_id: str):
        export = reports.export(
            session_id,
            fmt=request.args.get("format", "csv"),
            requested_by=current_user().uid,
            ip_address=client_ip(),
        )
        return app.response_class(
            export.content,
            mimetype=export.mimetype,
            headers={"Content-Disposition": f"attachment; filename={export.filename}"},
        )

    @app.route("/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @guard()
    def attendance_stats():
        user = current_user()
        start = request.args.get("start")
        end = request.args.get("end")
        user_id = request.args.get("userId") or None

        if user_id and user_id != user.uid:
            require_permission(user, Action.STATS_FOR_OTHERS)
        elif user_id is None and not is_allowed(user.role, Action.STATS_FOR_OTHERS):
            # members only ever see their own numbers
            user_id = user.uid

        stats = reports.stats(
            start=parse_iso_datetime(start, "start") if start else None,
            end=parse_iso_datetime(end, "end") if end else None,
            user_id=user_id,
        )
        return ok(stats=stats)

    @app.route("/attendance/offline-sync", methods=["POST"], endpoint="attendance_offline_sync")
    @guard(Action.OFFLINE_SYNC)
    def offline_sync():
        user = current_user()
        max_items = int(current_app.config.get("OFFLINE_SYNC_MAX_ITEMS", DEFAULT_OFFLINE_SYNC_MAX_ITEMS))
        items = parse_offline_items(json_body(), default_user_id=user.uid, max_items=max_items)
        result = checkins.sync_offline(items, caller_id=user.uid, caller_role=user.role, ip_address=client_ip())
        return ok(
            message=f"Synced {result.synced_count} of {len(items)} records",
            syncedCount=result.synced_count,
            skipped=result.skipped,
        )

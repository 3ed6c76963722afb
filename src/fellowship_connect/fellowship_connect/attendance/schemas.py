"""Request body schemas for the attendance endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import (
    optional_str,
    require_choice,
    require_int_range,
    require_list,
    require_non_empty,
    require_object,
)
from ..core.constants import (
    MAX_SESSION_MINUTES,
    MAX_STORABLE_DATETIME,
    MIN_SESSION_MINUTES,
    MIN_STORABLE_DATETIME,
)
from ..core.enums import CheckInMethod
from ..core.exceptions import ValidationError
from .model import OfflineCheckIn


@dataclass(frozen=True)
class CreateSessionInput:
    name: str
    location: str
    duration_minutes: int

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateSessionInput":
        data = require_object(payload)
        name = require_non_empty(data.get("name"), "name")
        location = require_non_empty(data.get("location"), "location")
        if len(name) > 150:
            raise ValidationError("name cannot exceed 150 characters", {"name": "max_length"})
        if len(location) > 255:
            raise ValidationError("location cannot exceed 255 characters", {"location": "max_length"})

        # "duration" is the field name older clients send
        raw_duration = data.get("durationMinutes", data.get("duration"))
        duration = require_int_range(
            raw_duration,
            "durationMinutes",
            minimum=MIN_SESSION_MINUTES,
            maximum=MAX_SESSION_MINUTES,
        )
        return cls(name=name, location=location, duration_minutes=duration)


@dataclass(frozen=True)
class CheckInInput:
    session_id: Optional[str]
    qr_code_data: Optional[str]
    user_id: Optional[str] = None
    method: CheckInMethod = CheckInMethod.QR

    @classmethod
    def from_payload(cls, payload: Any) -> "CheckInInput":
        """``userId`` and a ``manual``/``admin`` method are only meaningful for a leader
        checking in someone else; a self check-in is always ``qr``."""
        data = require_object(payload)
        session_id = optional_str(data.get("sessionId"), "sessionId")
        qr_code_data = optional_str(data.get("qrCodeData"), "qrCodeData")
        if session_id is None and qr_code_data is None:
            raise ValidationError("sessionId is required", {"sessionId": "required"})

        user_id = optional_str(data.get("userId"), "userId")
        raw_method = data.get("method")
        if user_id is None:
            if raw_method not in (None, CheckInMethod.QR.value):
                raise ValidationError("method is only accepted when checking in another member", {"method": "choice"})
            return cls(session_id=session_id, qr_code_data=qr_code_data)

        method = require_choice(raw_method or CheckInMethod.ADMIN.value, "method", CheckInMethod)
        if method not in (CheckInMethod.MANUAL, CheckInMethod.ADMIN):
            raise ValidationError("method must be one of: manual, admin", {"method": "choice"})
        return cls(session_id=session_id, qr_code_data=qr_code_data, user_id=user_id, method=method)


def parse_offline_items(payload: Any, *, default_user_id: str, max_items: int) -> list[OfflineCheckIn]:
    """Accept either a bare array or ``{"records": [...]}``."""
    raw = payload.get("records") if isinstance(payload, dict) else payload
    items = require_list(raw, "records", max_items=max_items)

    out: list[OfflineCheckIn] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"records[{index}] must be an object", {f"records[{index}]": "type"})
        session_id = require_non_empty(item.get("sessionId"), f"records[{index}].sessionId")
        checked_in_at = parse_iso_datetime(item.get("timestamp", item.get("checkedInAt")), f"records[{index}].timestamp")
        if not MIN_STORABLE_DATETIME <= checked_in_at <= MAX_STORABLE_DATETIME:
            raise ValidationError(
                f"records[{index}].timestamp is out of range",
                {f"records[{index}].timestamp": "range"},
            )
        user_id = optional_str(item.get("userId"), f"records[{index}].userId") or default_user_id
        out.append(OfflineCheckIn(user_id=user_id, session_id=session_id, checked_in_at=checked_in_at))
    return out

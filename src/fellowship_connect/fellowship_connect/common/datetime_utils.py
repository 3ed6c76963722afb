from __future__ import annotations

from datetime import datetime, timezone

from ..core.exceptions import ValidationError


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the format stored in MySQL DATETIME).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def parse_iso_datetime(value: object, field_name: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into naive UTC."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", {field_name: "required"})

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime", {field_name: "format"}) from None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")

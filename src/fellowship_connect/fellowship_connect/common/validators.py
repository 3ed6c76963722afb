from __future__ import annotations

from enum import Enum
from typing import Any, Optional, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", {field_name: "required"})
    return value.strip()


def optional_str(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", {field_name: "type"})
    return value.strip() or None


def require_min_length(value: Any, field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", {field_name: "min_length"})
    return value


def require_int_range(value: Any, field_name: str, *, minimum: int, maximum: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer", {field_name: "type"})
    if value < minimum or value > maximum:
        raise ValidationError(
            f"{field_name} must be between {minimum} and {maximum}",
            {field_name: "range"},
        )
    return value


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean", {field_name: "type"})
    return value


def require_choice(value: Any, field_name: str, enum_cls: type[E]) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}", {field_name: "choice"}) from None


def require_list(value: Any, field_name: str, *, max_items: int) -> list:
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be an array", {field_name: "type"})
    if len(value) > max_items:
        raise ValidationError(f"{field_name} cannot exceed {max_items} items", {field_name: "max_items"})
    return value


def parse_limit(value: Optional[str], *, default: int, maximum: int) -> int:
    if value is None or value == "":
        return default
    try:
        limit = int(value)
    except ValueError:
        raise ValidationError("limit must be an integer", {"limit": "type"}) from None
    return require_int_range(limit, "limit", minimum=1, maximum=maximum)

from __future__ import annotations

import ipaddress
from typing import Optional

from flask import request

from ..core.constants import MAX_IP_ADDRESS_LENGTH
from ..core.exceptions import ValidationError


def _normalize_ip(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        ip = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    # IPv6 scope ids can make a valid address arbitrarily long
    return str(ip)[:MAX_IP_ADDRESS_LENGTH]


def client_ip() -> str:
    """First parseable address of X-Forwarded-For, CF-Connecting-IP, then the peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    candidates = (
        forwarded.split(",")[0] if forwarded else None,
        request.headers.get("CF-Connecting-IP"),
        request.remote_addr,
    )
    for candidate in candidates:
        ip = _normalize_ip(candidate)
        if ip:
            return ip
    return "unknown"


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be valid JSON")
    return data

import pytest

from src.fellowship_connect.fellowship_connect.common.request_utils import client_ip


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, "203.0.113.7"),
        ({"X-Forwarded-For": "2001:db8::1"}, "2001:db8::1"),
        ({"CF-Connecting-IP": "198.51.100.4"}, "198.51.100.4"),
        ({"X-Forwarded-For": "x" * 300}, "10.1.2.3"),
        ({"X-Forwarded-For": "not-an-ip", "CF-Connecting-IP": "198.51.100.4"}, "198.51.100.4"),
        ({}, "10.1.2.3"),
    ],
)
def test_client_ip(app, headers, expected):
    with app.test_request_context("/", headers=headers, environ_base={"REMOTE_ADDR": "10.1.2.3"}):
        assert client_ip() == expected


def test_client_ip_without_any_usable_address(app):
    with app.test_request_context("/", headers={"X-Forwarded-For": "garbage"}, environ_base={"REMOTE_ADDR": ""}):
        assert client_ip() == "unknown"


def test_client_ip_never_exceeds_column_width(app):
    scoped = "fe80::1%" + "a" * 200
    with app.test_request_context("/", headers={"X-Forwarded-For": scoped}, environ_base={"REMOTE_ADDR": "10.1.2.3"}):
        assert len(client_ip()) <= 64

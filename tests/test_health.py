# tests/test_health.py
from typing import Any

from fastapi import status


def test_health_reports_ok(client: Any) -> None:
    """Health check answers with a millisecond timestamp."""
    r = client.get("/health")
    assert r.status_code == status.HTTP_200_OK
    body = r.json()
    assert body["status"] == "ok"
    assert isinstance(body["timestamp"], int)


def test_root_lists_endpoints(client: Any) -> None:
    r = client.get("/")
    assert r.status_code == status.HTTP_200_OK
    assert "submitLyrics" in r.json()["endpoints"]


def test_unknown_route_uses_error_envelope(client: Any) -> None:
    r = client.get("/does-not-exist")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json() == {"success": False, "data": None, "error": "Not Found"}

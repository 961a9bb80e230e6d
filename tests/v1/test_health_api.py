"""Tests for the service metadata endpoints."""

from fastapi import status


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_root_advertises_websocket(client) -> None:
    data = client.get("/").json()
    assert data["name"] == "Murmur API"
    assert data["websocket"] == "/api/v1/ws"

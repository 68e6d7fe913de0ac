"""Tests for the combined API + registration page application."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from registration import create_app
from registration.config import Settings
from registration.database import Database


def _settings(tmp_path: Path, **overrides: object) -> Settings:
    return Settings(database_path=tmp_path / "registration.sqlite3", **overrides)  # type: ignore[arg-type]


def test_api_is_mounted_under_prefix(tmp_path: Path) -> None:
    app = create_app(settings=_settings(tmp_path))

    with TestClient(app) as client:
        created = client.post("/api/register", json={"name": "Alice", "age": 30})
        assert created.status_code == 201, created.text
        assert created.json()["user"]["name"] == "Alice"

        duplicate = client.post("/api/register", json={"name": "Alice", "age": 25})
        assert duplicate.status_code == 422, duplicate.text
        assert "name" in duplicate.json()["errors"]

        listing = client.get("/api/users")
        assert listing.status_code == 200
        users = listing.json()["users"]
        assert len(users) == 1
        assert users[0]["name"] == "Alice"


def test_registration_page_is_served(tmp_path: Path) -> None:
    app = create_app(settings=_settings(tmp_path, title="Join Us"))

    with TestClient(app) as client:
        for path in ("/", "/register"):
            response = client.get(path)
            assert response.status_code == 200, response.text
            assert response.headers["content-type"].startswith("text/html")
            body = response.text
            assert "<title>Join Us</title>" in body
            assert 'id="register-form"' in body
            assert 'min="1"' in body and 'max="120"' in body
            assert 'const apiBase = "/api";' in body
            assert 'localStorage.setItem("token", payload.token)' in body


def test_page_uses_configured_api_prefix(tmp_path: Path) -> None:
    app = create_app(settings=_settings(tmp_path, api_prefix="/v1"))

    with TestClient(app) as client:
        page = client.get("/")
        assert 'const apiBase = "/v1";' in page.text

        listing = client.get("/v1/users")
        assert listing.status_code == 200
        assert listing.json() == {"users": []}


def test_shared_database_is_initialised(tmp_path: Path) -> None:
    database = Database(tmp_path / "shared.sqlite3")
    app = create_app(database=database, settings=_settings(tmp_path))

    assert app.state.database is database
    with TestClient(app) as client:
        response = client.post("/api/register", json={"name": "Bob", "age": 41})
        assert response.status_code == 201, response.text

    assert database.count_users() == 1

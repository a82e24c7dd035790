"""App wiring, configuration and migration tests."""
import logging
import os
import time
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from pydantic import ValidationError
from sqlalchemy import create_engine, inspect

from app.core.config import Settings
from app.main import create_app

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_api_test_route(client):
    body = client.get("/api/test").json()

    assert body["message"] == "API is working!"
    assert body["server"] == "Course File Server"
    assert body["timestamp"]


def test_home_page_links_categories(client):
    res = client.get("/")

    assert res.status_code == 200
    assert "text/html" in res.headers["content-type"]
    for category in ("units", "lessons", "tests"):
        assert f"/api/list-files/{category}" in res.text


def test_upload_form(client):
    res = client.get("/upload")

    assert res.status_code == 200
    assert 'enctype="multipart/form-data"' in res.text
    assert 'action="/api/upload"' in res.text


def test_startup_creates_category_dirs_and_purges_stale_staging(settings, make_client):
    settings.temp_dir.mkdir(parents=True)
    stale = settings.temp_dir / "leftover_1.txt"
    stale.write_bytes(b"x")
    day_ago = time.time() - 24 * 60 * 60
    os.utime(stale, (day_ago, day_ago))
    in_flight = settings.temp_dir / "pending_2.txt"
    in_flight.write_bytes(b"y")

    make_client(settings)

    for category in ("units", "lessons", "tests"):
        assert (settings.public_dir / category).is_dir()
    assert list(settings.temp_dir.iterdir()) == [in_flight]


def test_requests_are_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.main"):
        client.get("/health")

    assert "GET /health -> 200" in caplog.text


def test_failed_requests_are_logged(settings, caplog):
    app = create_app(settings)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    with TestClient(app, raise_server_exceptions=False) as client, caplog.at_level(logging.INFO, logger="app.main"):
        res = client.get("/boom")

    assert res.status_code == 500
    assert "GET /boom -> 500" in caplog.text


def test_custom_api_prefix(settings, make_client):
    settings.api_prefix = "/v1"
    client = make_client(settings)

    assert client.get("/v1/list-files/units").status_code == 200
    assert client.get("/api/list-files/units").status_code == 404


@pytest.mark.parametrize("secret", ["", "   "])
def test_settings_reject_empty_secret(secret):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, secret_key=secret)


@pytest.mark.parametrize("port", [0, -1])
def test_settings_reject_non_positive_port(port):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, port=port)


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SECRET_KEY", "from-env")
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path / "files"))
    monkeypatch.setenv("UPLOAD_REQUIRES_AUTH", "true")

    settings = Settings(_env_file=None)

    assert settings.secret_key == "from-env"
    assert settings.temp_dir == tmp_path / "files" / "temp"
    assert settings.upload_requires_auth is True
    assert settings.max_upload_bytes == 10 * 1024 * 1024


def test_alembic_migration_creates_users_table(monkeypatch, tmp_path):
    db_path = tmp_path / "migrated.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.delenv("ALEMBIC_DATABASE_URL", raising=False)

    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    command.upgrade(config, "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        columns = {c["name"] for c in inspector.get_columns("users")}
        assert {"id", "username", "email", "hashed_password", "created_at"} <= columns
        indexes = {i["name"]: i for i in inspector.get_indexes("users")}
        assert indexes["ix_users_username"]["unique"]
    finally:
        engine.dispose()

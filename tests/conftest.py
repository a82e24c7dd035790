"""Shared fixtures: an isolated app per test (own database and public dir)."""
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

TEST_SECRET = "test-secret-key"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        public_dir=tmp_path / "public",
        secret_key=TEST_SECRET,
    )


@pytest.fixture
def make_client():
    """Build a started TestClient for the given settings."""
    clients = []

    def _make(settings: Settings) -> TestClient:
        client = TestClient(create_app(settings))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(settings, make_client) -> TestClient:
    return make_client(settings)


def register(client: TestClient, username="alice", email="a@x.com", password="secret1"):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def login(client: TestClient, username="alice", password="secret1"):
    return client.post("/api/auth/login", json={"username": username, "password": password})

"""HTTP tests for uploads, listings and serving of stored files."""
import errno
import re

import pytest

from app.services import storage
from conftest import login, register

TEN_MIB = 10 * 1024 * 1024


def upload(client, name="notes.txt", content=b"hello", mime="text/plain", category="units", field="file", headers=None):
    data = {} if category is None else {"category": category}
    return client.post(
        "/api/upload",
        files={field: (name, content, mime)},
        data=data,
        headers=headers or {},
    )


def temp_files(settings):
    return list(settings.temp_dir.iterdir()) if settings.temp_dir.exists() else []


def test_upload_and_list(client, settings):
    res = upload(client)

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    stored = body["file"]
    assert stored["originalName"] == "notes.txt"
    assert stored["category"] == "units"
    assert stored["size"] == 5
    assert stored["mimetype"] == "text/plain"
    assert re.fullmatch(r"notes_\d+\.txt", stored["filename"])
    assert stored["url"] == f"/units/{stored['filename']}"
    assert (settings.public_dir / "units" / stored["filename"]).read_bytes() == b"hello"
    assert temp_files(settings) == []

    listing = client.get("/api/list-files/units")
    assert listing.status_code == 200
    assert stored["filename"] in listing.json()


def test_stored_file_is_served_at_public_url(client):
    url = upload(client, content=b"lesson plan").json()["file"]["url"]

    res = client.get(url)

    assert res.status_code == 200
    assert res.content == b"lesson plan"


def test_staging_area_is_not_served(client, settings):
    settings.temp_dir.mkdir(parents=True, exist_ok=True)
    (settings.temp_dir / "pending_1.txt").write_bytes(b"secret")

    assert client.get("/temp/pending_1.txt").status_code == 404
    assert client.get("/api/list-files/temp").status_code == 400


def test_upload_legacy_field_name(client):
    res = upload(client, field="filename", category="lessons")

    assert res.status_code == 200, res.text
    assert res.json()["file"]["url"].startswith("/lessons/")


def test_upload_too_large(client, settings):
    res = upload(client, name="big.txt", content=b"x" * (TEN_MIB + 1))

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "File too large. Maximum size is 10MB."}
    assert temp_files(settings) == []
    for category in ("units", "lessons", "tests"):
        assert client.get(f"/api/list-files/{category}").json() == []


@pytest.mark.parametrize("category", ["videos", "temp", ""])
def test_upload_invalid_category_cleans_staging(client, settings, category):
    res = upload(client, category=category)

    assert res.status_code == 400
    assert res.json()["success"] is False
    assert "category" in res.json()["error"]
    assert temp_files(settings) == []


def test_upload_missing_category(client, settings):
    res = upload(client, category=None)

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "No category was selected"}
    assert temp_files(settings) == []


def test_upload_disallowed_type(client, settings):
    res = upload(client, name="tool.exe", content=b"MZ", mime="application/x-msdownload")

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "File type not allowed"}
    assert temp_files(settings) == []


def test_upload_without_file(client):
    res = client.post("/api/upload", data={"category": "units"})

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "No file was selected"}


def test_upload_malformed_form_uses_error_key(client):
    res = client.post("/api/upload", data={"file": "not-a-file", "category": "units"})

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Invalid request"}


def test_upload_relocation_failure_is_generic_500(client, settings, monkeypatch):
    def cross_device(src, dst):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(storage.os, "replace", cross_device)

    res = upload(client)

    assert res.status_code == 500
    assert res.json() == {"success": False, "error": "Upload failed"}
    assert temp_files(settings) == []


def test_list_files_is_idempotent(client):
    upload(client, name="a.txt")
    upload(client, name="b.txt", category="tests")

    first = client.get("/api/list-files/units").json()
    second = client.get("/api/list-files/units").json()

    assert first == second
    assert len(first) == 1


def test_list_files_excludes_dotfiles(client, settings):
    (settings.public_dir / "lessons" / ".gitkeep").write_bytes(b"")

    assert client.get("/api/list-files/lessons").json() == []


def test_list_files_invalid_folder(client):
    res = client.get("/api/list-files/videos")

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Invalid folder"}


def test_upload_gate_when_required(settings, make_client):
    settings.upload_requires_auth = True
    client = make_client(settings)

    assert upload(client).status_code == 401

    register(client)
    token = login(client).json()["token"]
    res = upload(client, headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200, res.text

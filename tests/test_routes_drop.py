"""Tests for the slot, upload and view routes."""

import io

import pytest
from fastapi.testclient import TestClient

from filedrop.main import create_app


def create_slot(client, room="#main", requester="alice"):
    response = client.post("/api/v1/slots", json={"room": room, "requester": requester})
    assert response.status_code == 201
    return response.json()["token"]


def upload(client, token, content=b"meow", name="cat.png", user="alice", room="main"):
    files = {"filename": (name, io.BytesIO(content), "image/png")}
    return client.post(f"/upload/{token}/{user}/{room}", files=files, follow_redirects=False)


def test_create_slot(client, mock_notifier):
    """Test issuing a slot and DMing the link."""
    response = client.post("/api/v1/slots", json={"room": "#main", "requester": "alice"})

    assert response.status_code == 201
    data = response.json()
    token = data["token"]
    assert data["upload_url"] == f"http://drop.test/request/{token}/alice/main"
    mock_notifier.send_upload_link.assert_called_once_with("#main", "alice", data["upload_url"])


def test_create_slot_validation(client):
    """Test that room and requester are required."""
    response = client.post("/api/v1/slots", json={"room": "", "requester": "alice"})

    assert response.status_code == 422


def test_create_slot_command_token(app_settings, lifecycle, mock_notifier):
    """Test the shared secret on the slot trigger."""
    app_settings.COMMAND_TOKEN = "s3cret"
    client = TestClient(create_app(app_settings, lifecycle=lifecycle, notifier=mock_notifier))
    body = {"room": "#main", "requester": "alice"}

    assert client.post("/api/v1/slots", json=body).status_code == 403
    assert client.post("/api/v1/slots", json=body, headers={"X-Command-Token": "wrong"}).status_code == 403
    assert client.post("/api/v1/slots", json=body, headers={"X-Command-Token": "s3cret"}).status_code == 201


def test_upload_form(client):
    """Test rendering the form for a usable token."""
    token = create_slot(client)

    response = client.get(f"/request/{token}/alice/main")

    assert response.status_code == 200
    assert f'action="/upload/{token}/alice/main"' in response.text
    assert "Maximum file size: 2 KiB" in response.text


def test_upload_form_quotes_action(client):
    """Test that a user name with URL syntax stays inside its path segment."""
    token = create_slot(client)

    response = client.get(f"/request/{token}/who%3F/main")

    assert response.status_code == 200
    assert f'action="/upload/{token}/who%3F/main"' in response.text


def test_upload_form_unknown_token(client):
    """Test the not-found page for an unknown token."""
    response = client.get("/request/ffff/alice/main")

    assert response.status_code == 404
    assert "Not found" in response.text


def test_upload_and_view(client, mock_notifier, lifecycle):
    """Test the full upload and retrieval flow."""
    token = create_slot(client)

    response = upload(client, token, content=b"\x89PNG meow")

    assert response.status_code == 303
    assert response.headers["location"] == "/static/upload-success.html"
    mock_notifier.announce_upload.assert_called_once_with(
        "main", "alice", f"http://drop.test/view/{token}/cat.png"
    )
    assert lifecycle.describe_for_retrieval(token) == "cat.png"

    view = client.get(f"/view/{token}/anything")
    assert view.status_code == 200
    assert view.content == b"\x89PNG meow"


def test_used_token_is_not_found(client):
    """Test that a used token looks exactly like an unknown one."""
    token = create_slot(client)
    upload(client, token)

    used_form = client.get(f"/request/{token}/alice/main")
    unknown_form = client.get("/request/ffff/alice/main")
    second_upload = upload(client, token, content=b"again")

    assert used_form.status_code == unknown_form.status_code == 404
    assert used_form.text == unknown_form.text
    assert second_upload.status_code == 404


def test_upload_unknown_token(client, mock_notifier):
    """Test uploading against a token that was never issued."""
    response = upload(client, "ffff")

    assert response.status_code == 404
    mock_notifier.announce_upload.assert_not_called()


def test_upload_too_large(client, lifecycle):
    """Test the per-file size limit."""
    token = create_slot(client)

    response = upload(client, token, content=b"x" * 2049)

    assert response.status_code == 413
    assert response.text == "File too large!"
    assert lifecycle.is_usable(token)


def test_upload_empty_file(client, lifecycle, mock_notifier):
    """Test that an empty upload is refused and the slot stays pending."""
    token = create_slot(client)

    response = upload(client, token, content=b"")

    assert response.status_code == 400
    assert response.text == "Empty file"
    assert lifecycle.is_usable(token)
    assert lifecycle.describe_for_retrieval(token) is None
    mock_notifier.announce_upload.assert_not_called()


def test_upload_quota_exceeded(client, lifecycle):
    """Test the redirect when the storage quota is full."""
    tokens = [create_slot(client, requester=f"user{i}") for i in range(3)]
    assert upload(client, tokens[0], content=b"a" * 2048).status_code == 303
    assert upload(client, tokens[1], content=b"b" * 2000).status_code == 303

    response = upload(client, tokens[2], content=b"c" * 100)

    assert response.status_code == 303
    assert response.headers["location"] == "/static/storage-full.html"
    assert lifecycle.usage().committed_bytes == 4048
    assert lifecycle.is_usable(tokens[2])


def test_upload_sanitizes_file_name(client, lifecycle):
    """Test that uploaded names cannot escape the slot directory."""
    token = create_slot(client)

    upload(client, token, name="../../evil name.png")

    stored = lifecycle.describe_for_retrieval(token)
    assert "/" not in stored
    assert " " not in stored
    assert (lifecycle.storage.slot_dir(token) / stored).is_file()


def test_view_pending_token(client):
    """Test that a slot without a file has nothing to serve."""
    token = create_slot(client)

    assert client.get(f"/view/{token}/cat.png").status_code == 404


def test_expired_slot(client, clock):
    """Test that slots disappear after the retention window."""
    token = create_slot(client)
    upload(client, token)
    clock.advance(minutes=11)

    assert client.get(f"/view/{token}/cat.png").status_code == 404
    assert client.get(f"/request/{token}/alice/main").status_code == 404


def test_usage(client):
    """Test the operator usage endpoint."""
    token = create_slot(client)
    create_slot(client, requester="bob")
    upload(client, token, content=b"x" * 100)

    response = client.get("/api/v1/usage")

    assert response.status_code == 200
    assert response.json() == {
        "pending_entries": 1,
        "occupied_entries": 1,
        "committed_bytes": 100,
        "reserved_bytes": 0,
        "max_storage_bytes": 4096,
    }


def test_index_and_unknown_route(client):
    """Test the landing page and the not-found fallback."""
    assert client.get("/").status_code == 200

    response = client.get("/no/such/page")
    assert response.status_code == 404
    assert "Not found" in response.text


@pytest.mark.parametrize("page", ["upload-success.html", "storage-full.html"])
def test_static_pages(client, page):
    """Test the redirect targets exist."""
    assert client.get(f"/static/{page}").status_code == 200


def test_startup_wipes_orphans(app_settings, lifecycle, mock_notifier):
    """Test that leftover slot directories are removed on startup."""
    orphan = lifecycle.storage.base_path / "orphan"
    orphan.mkdir(parents=True)

    with TestClient(create_app(app_settings, lifecycle=lifecycle, notifier=mock_notifier)):
        assert lifecycle.storage.base_path.is_dir()
        assert not orphan.exists()

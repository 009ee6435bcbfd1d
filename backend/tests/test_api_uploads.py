from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, login

from fame.storage import StorageError

MP3 = b"ID3\x03\x00\x00\x00" + b"\x00" * 64


def _upload(client, event_id, filename="My Track.mp3", content=MP3, content_type="audio/mpeg", file_type="music"):
    return client.post(
        "/api/gcs/upload",
        files={"file": (filename, content, content_type)},
        data={"event_id": event_id, "artist_id": "artist-1", "file_type": file_type},
    )


def test_upload_and_serve_media(client, event):
    res = _upload(client, event["id"])
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["key"].startswith(f"events/{event['id']}/artists/artist-1/music/")
    assert data["key"].endswith("_My_Track.mp3")
    assert data["size"] == len(MP3)
    assert data["url"] == f"/api/media/{data['key']}"

    media = client.get(data["url"])
    assert media.status_code == 200
    assert media.content == MP3
    assert media.headers["content-type"] == "audio/mpeg"
    assert media.headers["cache-control"] == "private, max-age=300"


def test_upload_validation(client, event):
    res = _upload(client, event["id"], file_type="")
    assert res.json()["error"]["code"] == "MISSING_FIELDS"
    res = _upload(client, event["id"], file_type="stems")
    assert res.json()["error"]["code"] == "INVALID_FILE_TYPE"
    res = _upload(client, "no-such-event")
    assert res.status_code == 404
    res = _upload(client, event["id"], filename="pic.bmp", content_type="image/bmp", file_type="images")
    assert res.json()["error"] == {
        "code": "INVALID_FILE",
        "message": "File type image/bmp is not supported for image files",
    }


def test_upload_storage_failure(client, store, event, monkeypatch):
    def fail(*args, **kwargs):
        raise StorageError("bucket unavailable")

    monkeypatch.setattr(store, "upload_file", fail)
    res = _upload(client, event["id"])
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "UPLOAD_FAILED"


def test_media_route_only_serves_artist_uploads(client, store, event):
    assert client.get(f"/api/media/events/{event['id']}.json").status_code == 404
    assert client.get("/api/media/users/super_admin/users.json").status_code == 404
    assert client.get(f"/api/media/events/{event['id']}/artists/a/music/missing.mp3").status_code == 404


def test_storage_outage_returns_503(client, store, monkeypatch):
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)

    def offline(prefix):
        raise StorageError("offline")

    monkeypatch.setattr(store, "list_keys", offline)
    res = client.get("/api/events")
    assert res.status_code == 503
    assert res.json()["error"]["code"] == "STORAGE_ERROR"


def test_upload_identifiers_are_single_segments(client, store, event):
    res = client.post(
        "/api/gcs/upload",
        files={"file": ("x.mp3", MP3, "audio/mpeg")},
        data={"event_id": event["id"], "artist_id": "../../../users", "file_type": "music"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_IDENTIFIER"
    assert store.list_keys("users/music") == []

    dotted = f"/api/media/events/{event['id']}/artists/%2E%2E/%2E%2E/%2E%2E/users/super_admin/users.json"
    assert client.get(dotted).status_code == 404

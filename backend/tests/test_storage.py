"""Tests for MinIO storage helpers."""

from unittest.mock import MagicMock

import pytest

from services import storage

_real_get_minio_client = storage.get_minio_client


@pytest.fixture()
def real_client_factory(monkeypatch):
    monkeypatch.setattr(storage, "get_minio_client", _real_get_minio_client)
    _real_get_minio_client.cache_clear()
    yield
    _real_get_minio_client.cache_clear()


@pytest.fixture()
def public_media(monkeypatch):
    monkeypatch.setattr(storage.settings, "minio_public_url", "https://cdn.example.com/media/")
    monkeypatch.setattr(storage.settings, "minio_bucket", "streamhub-media")


def test_get_minio_client_uses_settings(monkeypatch, real_client_factory):
    mock_client = MagicMock(name="Minio")
    created_clients = []

    monkeypatch.setattr(storage.settings, "minio_secure", True)

    def fake_minio(endpoint, access_key, secret_key, secure):
        created_clients.append(
            {
                "endpoint": endpoint,
                "access_key": access_key,
                "secret_key": secret_key,
                "secure": secure,
            }
        )
        return mock_client

    monkeypatch.setattr(storage, "Minio", fake_minio)

    client = storage.get_minio_client()
    assert client is mock_client
    assert storage.get_minio_client() is client  # cached

    assert created_clients == [
        {
            "endpoint": storage.settings.minio_endpoint,
            "access_key": storage.settings.minio_access_key,
            "secret_key": storage.settings.minio_secret_key,
            "secure": True,
        }
    ]


def test_ensure_bucket_existing():
    client = MagicMock()
    client.bucket_exists.return_value = True

    storage.ensure_bucket(client)
    client.bucket_exists.assert_called_once_with(storage.settings.minio_bucket)
    client.make_bucket.assert_not_called()


def test_ensure_bucket_creates_when_missing():
    client = MagicMock()
    client.bucket_exists.return_value = False

    storage.ensure_bucket(client)

    client.make_bucket.assert_called_once_with(storage.settings.minio_bucket)


def test_ensure_bucket_handles_existing_race(monkeypatch):
    class FakeS3Error(Exception):
        def __init__(self, code):
            super().__init__(code)
            self.code = code

    client = MagicMock()
    client.bucket_exists.return_value = False
    client.make_bucket.side_effect = FakeS3Error("BucketAlreadyExists")

    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    storage.ensure_bucket(client)

    client.make_bucket.assert_called_once_with(storage.settings.minio_bucket)


def test_upload_bytes_returns_public_url(public_media):
    client = MagicMock()
    client.bucket_exists.return_value = True

    url = storage.upload_bytes(b"jpeg-bytes", folder="avatars", content_type="image/jpeg", client=client)

    assert url.startswith("https://cdn.example.com/media/streamhub-media/avatars/")
    assert url.endswith(".jpg")
    client.put_object.assert_called_once()
    called_bucket, called_key = client.put_object.call_args.args[:2]
    assert called_bucket == "streamhub-media"
    assert called_key.startswith("avatars/")
    assert client.put_object.call_args.kwargs["length"] == len(b"jpeg-bytes")
    assert client.put_object.call_args.kwargs["content_type"] == "image/jpeg"


def test_object_key_round_trip(public_media):
    url = storage.object_url("covers/abc def.jpg")

    assert url == "https://cdn.example.com/media/streamhub-media/covers/abc%20def.jpg"
    assert storage.object_key_from_url(url) == "covers/abc def.jpg"


def test_object_key_from_url_rejects_foreign_urls(public_media):
    assert storage.object_key_from_url("https://elsewhere.example.com/streamhub-media/a.jpg") is None
    assert storage.object_key_from_url("https://cdn.example.com/media/other-bucket/a.jpg") is None
    assert storage.object_key_from_url("https://cdn.example.com/media/streamhub-media/") is None


def test_media_base_url_defaults_to_endpoint(monkeypatch):
    monkeypatch.setattr(storage.settings, "minio_public_url", None)
    monkeypatch.setattr(storage.settings, "minio_endpoint", "minio.internal:9000")
    monkeypatch.setattr(storage.settings, "minio_secure", False)

    assert storage.settings.media_base_url() == "http://minio.internal:9000"


def test_delete_object_calls_remove_object():
    client = MagicMock()

    storage.delete_object("avatars/demo.jpg", client)

    client.remove_object.assert_called_once_with(
        storage.settings.minio_bucket,
        "avatars/demo.jpg",
    )


def test_delete_object_ignores_missing_key_errors(monkeypatch):
    class FakeS3Error(Exception):
        def __init__(self, code):
            super().__init__(code)
            self.code = code

    client = MagicMock()
    client.remove_object.side_effect = FakeS3Error("NoSuchKey")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    storage.delete_object("avatars/missing.jpg", client)

    client.remove_object.assert_called_once()


def test_delete_by_url_skips_foreign_urls(public_media):
    client = MagicMock()

    assert storage.delete_by_url("https://elsewhere.example.com/x.jpg", client) is False
    client.remove_object.assert_not_called()


def test_delete_by_url_removes_our_objects(public_media):
    client = MagicMock()

    deleted = storage.delete_by_url(storage.object_url("avatars/demo.jpg"), client)

    assert deleted is True
    client.remove_object.assert_called_once_with("streamhub-media", "avatars/demo.jpg")

"""MinIO client utilities."""

from __future__ import annotations

import logging
from functools import lru_cache
from io import BytesIO
from urllib.parse import quote, unquote, urlsplit
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from core import settings

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})


@lru_cache
def get_minio_client() -> Minio:
    """Return a cached MinIO client configured from settings."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket(client: Minio | None = None) -> None:
    """Ensure the configured bucket exists."""
    client = client or get_minio_client()
    bucket_name = settings.minio_bucket

    if client.bucket_exists(bucket_name):  # pragma: no cover - network call
        return

    try:
        client.make_bucket(bucket_name)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - handle race conditions
        allowed_codes = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}
        if exc.code not in allowed_codes:
            raise


def object_url(object_key: str) -> str:
    """Return the durable URL clients use to fetch an object."""
    return f"{settings.media_base_url()}/{settings.minio_bucket}/{quote(object_key)}"


def object_key_from_url(url: str) -> str | None:
    """Recover the object key from a URL produced by ``object_url``.

    Returns None for URLs that do not point into the configured bucket.
    """
    base = urlsplit(settings.media_base_url())
    parsed = urlsplit(url)
    if (parsed.scheme, parsed.netloc) != (base.scheme, base.netloc):
        return None
    prefix = f"{base.path.rstrip('/')}/{settings.minio_bucket}/"
    if not parsed.path.startswith(prefix):
        return None
    object_key = unquote(parsed.path[len(prefix):])
    return object_key or None


def upload_bytes(
    data: bytes,
    *,
    folder: str,
    content_type: str,
    extension: str = "jpg",
    client: Minio | None = None,
) -> str:
    """Store ``data`` under a fresh key in ``folder`` and return its URL."""
    client = client or get_minio_client()
    ensure_bucket(client)
    object_key = f"{folder.strip('/')}/{uuid4().hex}.{extension}"
    client.put_object(
        settings.minio_bucket,
        object_key,
        data=BytesIO(data),
        length=len(data),
        content_type=content_type,
    )
    return object_url(object_key)


def delete_object(object_key: str, client: Minio | None = None) -> None:
    """Delete an object from the configured bucket when it exists."""
    client = client or get_minio_client()
    try:
        client.remove_object(settings.minio_bucket, object_key)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - network call
        if exc.code not in MISSING_OBJECT_CODES:
            raise


def delete_by_url(url: str, client: Minio | None = None) -> bool:
    """Delete the object behind ``url``; return False when it is not ours."""
    object_key = object_key_from_url(url)
    if object_key is None:
        logger.info("Skipping delete for foreign media URL", extra={"url": url})
        return False
    delete_object(object_key, client)
    return True

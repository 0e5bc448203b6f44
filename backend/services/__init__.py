"""Business logic services."""

from .images import (
    JPEG_CONTENT_TYPE,
    MAX_IMAGE_DIMENSION,
    UploadTooLargeError,
    process_image_bytes,
    read_upload_file,
)
from .storage import (
    delete_by_url,
    delete_object,
    ensure_bucket,
    get_minio_client,
    object_key_from_url,
    object_url,
    upload_bytes,
)

__all__ = [
    "get_minio_client",
    "ensure_bucket",
    "delete_object",
    "delete_by_url",
    "object_url",
    "object_key_from_url",
    "upload_bytes",
    "process_image_bytes",
    "read_upload_file",
    "MAX_IMAGE_DIMENSION",
    "JPEG_CONTENT_TYPE",
    "UploadTooLargeError",
]

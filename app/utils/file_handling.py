import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import anyio
from fastapi import UploadFile, status
from google.cloud import storage
from google.oauth2 import service_account

from app.core.config import Settings
from app.core.exceptions import CustomHTTPException
from app.core.error_codes import INVALID_FILE_TYPE, FILE_TOO_LARGE, FILE_UPLOAD_ERROR

logger = logging.getLogger(__name__)

POST_IMAGE_ALLOWED_MIME_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/avif": "avif",
}


@dataclass
class StoredMedia:
    url: str
    file_id: str


def sniff_mime_type(header: bytes) -> str:
    """Detect the MIME type from the leading bytes of a file"""
    # libmagic is loaded on first use so the app imports without it
    import magic

    return magic.from_buffer(header, mime=True)


class GCSMediaStorage:
    """Google Cloud Storage backend. The client calls block, so they run in a worker thread."""

    def __init__(self, app_settings: Settings):
        if not app_settings.GCS_BUCKET_NAME:
            raise RuntimeError("GCS_BUCKET_NAME must be set for the gcs media backend")
        try:
            credentials_json = app_settings.GCS_CREDENTIALS_JSON
            if credentials_json:
                credentials = service_account.Credentials.from_service_account_info(
                    json.loads(credentials_json)
                )
                client = storage.Client(credentials=credentials, project=app_settings.GCS_PROJECT_ID)
            else:
                client = storage.Client(project=app_settings.GCS_PROJECT_ID)
            self.bucket = client.bucket(app_settings.GCS_BUCKET_NAME)
        except Exception as e:
            logger.error(f"Failed to initialize GCS client: {str(e)}")
            raise RuntimeError("Could not initialize cloud storage")
        self.public_base_url = app_settings.GCS_PUBLIC_BASE_URL

    async def upload(self, data: bytes, path: str, content_type: str) -> StoredMedia:
        blob = self.bucket.blob(path)
        await anyio.to_thread.run_sync(
            lambda: blob.upload_from_string(data, content_type=content_type)
        )
        return StoredMedia(url=f"{self.public_base_url}/{path}", file_id=path)

    async def delete(self, file_id: str) -> bool:
        blob = self.bucket.blob(file_id)
        if not await anyio.to_thread.run_sync(blob.exists):
            logger.warning(f"File not found: {file_id}")
            return False
        await anyio.to_thread.run_sync(blob.delete)
        logger.info(f"Deleted: {file_id}")
        return True


class LocalMediaStorage:
    """Filesystem backend for development and tests; files are served under MEDIA_BASE_URL."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    async def upload(self, data: bytes, path: str, content_type: str) -> StoredMedia:
        target = self.root / path
        await anyio.to_thread.run_sync(lambda: target.parent.mkdir(parents=True, exist_ok=True))
        await anyio.to_thread.run_sync(target.write_bytes, data)
        return StoredMedia(url=f"{self.base_url}/{path}", file_id=path)

    async def delete(self, file_id: str) -> bool:
        target = self.root / file_id
        if not target.is_file():
            logger.warning(f"File not found: {file_id}")
            return False
        await anyio.to_thread.run_sync(target.unlink)
        logger.info(f"Deleted: {file_id}")
        return True


def create_media_storage(app_settings: Settings):
    if app_settings.MEDIA_STORAGE_BACKEND == "local":
        return LocalMediaStorage(app_settings.MEDIA_ROOT, app_settings.MEDIA_BASE_URL)
    return GCSMediaStorage(app_settings)


async def save_post_image(storage_backend, file: UploadFile, user_id: str, max_size: int, base_path: str) -> StoredMedia:
    """Validate an uploaded post image and hand it to the storage backend"""
    contents = await file.read()

    if len(contents) > max_size:
        raise CustomHTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Max size: {max_size // (1024 * 1024)}MB",
            error_code=FILE_TOO_LARGE
        )

    mime_type = sniff_mime_type(contents[:2048])
    if mime_type not in POST_IMAGE_ALLOWED_MIME_TYPES:
        raise CustomHTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {', '.join(POST_IMAGE_ALLOWED_MIME_TYPES.keys())} files allowed",
            error_code=INVALID_FILE_TYPE
        )

    # Generate unique filename
    file_ext = POST_IMAGE_ALLOWED_MIME_TYPES[mime_type]
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    filename = f"post_{timestamp}_{uuid.uuid4().hex[:8]}.{file_ext}"
    path = os.path.join(base_path.format(user_id=user_id), filename)

    try:
        return await storage_backend.upload(contents, path, mime_type)
    except Exception as e:
        logger.error(f"File upload failed: {str(e)}")
        raise CustomHTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process file upload",
            error_code=FILE_UPLOAD_ERROR
        )


async def delete_media(storage_backend, file_id: Optional[str]) -> bool:
    """Best-effort removal of a stored file; failures are logged, not raised"""
    if not file_id:
        return False
    try:
        return await storage_backend.delete(file_id)
    except Exception as e:
        logger.error(f"Deletion failed: {str(e)}")
        return False

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from fastapi import Request

from services.errors import AppError

logger = logging.getLogger(__name__)


class FileStorage(ABC):
    @abstractmethod
    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Store ``data`` under ``path`` and return a publicly readable URL."""


class FirebaseFileStorage(FileStorage):
    def __init__(self, bucket_name: Optional[str] = None):
        from firebase_admin import storage

        self._bucket = storage.bucket(bucket_name) if bucket_name else storage.bucket()

    def upload(self, path, data, content_type, metadata=None):
        blob = self._bucket.blob(path)
        if metadata:
            blob.metadata = dict(metadata)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
        logger.info("Uploaded file", extra={"path": path, "size": len(data)})
        return blob.public_url


def get_file_storage(request: Request) -> FileStorage:
    storage = getattr(request.app.state, "file_storage", None)
    if storage is None:
        raise AppError("File storage is not configured", status_code=503)
    return storage

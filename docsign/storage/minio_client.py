"""
MinIO client for object storage operations.
"""

import os
import re
import uuid
import logging
from datetime import datetime
from io import BytesIO
from typing import Dict, Any, Optional

import urllib3
from minio import Minio
from minio.error import S3Error

from docsign.core.exceptions import StorageError
from .blob_store import BlobStore, StoredObject

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class MinIOClient(BlobStore):
    """MinIO-backed blob store for document content."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        secure: bool = False,
        public_url: Optional[str] = None,
        client: Optional[Minio] = None
    ):
        """Initialize MinIO client."""
        self.client = client or Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure
        )
        self.endpoint = endpoint
        self.bucket_name = bucket_name
        scheme = "https" if secure else "http"
        self.public_url = (public_url or f"{scheme}://{endpoint}").rstrip("/")
        self._bucket_ready = False
        logger.info(f"MinIO client initialized for endpoint: {endpoint}")

    @classmethod
    def from_env(cls) -> "MinIOClient":
        """Build a client from MINIO_* environment variables."""
        return cls(
            endpoint=os.getenv("MINIO_ENDPOINT", "localhost:9000"),
            access_key=os.getenv("MINIO_ACCESS_KEY", "admin"),
            secret_key=os.getenv("MINIO_SECRET_KEY", "admin123456"),
            bucket_name=os.getenv("MINIO_BUCKET", "docsign-documents"),
            secure=os.getenv("MINIO_SECURE", "false").lower() == "true",
            public_url=os.getenv("MINIO_PUBLIC_URL")
        )

    def ensure_bucket_exists(self) -> None:
        """Ensure bucket exists, create if not."""
        if self._bucket_ready:
            return
        if not self.client.bucket_exists(self.bucket_name):
            self.client.make_bucket(self.bucket_name)
            logger.info(f"Created bucket: {self.bucket_name}")
        self._bucket_ready = True

    def object_url(self, object_name: str) -> str:
        return f"{self.public_url}/{self.bucket_name}/{object_name}"

    @staticmethod
    def build_object_name(suggested_name: str) -> str:
        """Unique object name: timestamp, short uuid and a sanitized filename."""
        stem = _UNSAFE_NAME_CHARS.sub("_", suggested_name or "document").strip("_") or "document"
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        unique_id = uuid.uuid4().hex[:8]
        return f"documents/{timestamp}_{unique_id}_{stem}"

    async def put(self, data: bytes, content_type: str,
                  suggested_name: str) -> StoredObject:
        """Upload file data to MinIO."""
        object_name = self.build_object_name(suggested_name)
        try:
            self.ensure_bucket_exists()
            self.client.put_object(
                self.bucket_name,
                object_name,
                BytesIO(data),
                length=len(data),
                content_type=content_type
            )
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            logger.error(f"Failed to upload to {self.bucket_name}/{object_name}: {e}")
            raise StorageError(f"Failed to upload {suggested_name}", object_id=object_name) from e

        logger.info(f"Uploaded {len(data)} bytes to {self.bucket_name}/{object_name}")
        return StoredObject(url=self.object_url(object_name), id=object_name)

    async def get(self, object_id: str) -> bytes:
        """Download file data from MinIO."""
        response = None
        try:
            response = self.client.get_object(self.bucket_name, object_id)
            data = response.read()
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            logger.error(f"Failed to download {self.bucket_name}/{object_id}: {e}")
            raise StorageError(f"Failed to download {object_id}", object_id=object_id) from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

        logger.info(f"Downloaded {len(data)} bytes from {self.bucket_name}/{object_id}")
        return data

    async def delete(self, object_id: str) -> None:
        """Delete file from MinIO."""
        try:
            self.client.remove_object(self.bucket_name, object_id)
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            logger.error(f"Failed to delete {self.bucket_name}/{object_id}: {e}")
            raise StorageError(f"Failed to delete {object_id}", object_id=object_id) from e
        logger.info(f"Deleted {self.bucket_name}/{object_id}")

    async def health_check(self) -> Dict[str, Any]:
        try:
            self.client.bucket_exists(self.bucket_name)
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            return {"status": "unhealthy", "error": str(e), "type": "object_storage"}
        return {"status": "healthy", "type": "object_storage"}

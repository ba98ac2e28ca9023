"""
Blob Store Interface

Abstract interface every object storage backend implements so the
lifecycle and signing engines never talk to a storage SDK directly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any

from fastapi import Request


@dataclass(frozen=True)
class StoredObject:
    """Stable reference to stored content"""
    url: str
    id: str


class BlobStore(ABC):
    """
    Abstract base class for binary content storage.

    Implementations raise ``StorageError`` on failure; they never
    return a success flag.
    """

    @abstractmethod
    async def put(self, data: bytes, content_type: str,
                  suggested_name: str) -> StoredObject:
        """
        Store content and return its reference.

        Args:
            data: Raw bytes to store
            content_type: MIME type of the content
            suggested_name: Human-readable name used to build the object id

        Returns:
            StoredObject with a dereferenceable URL and opaque id

        Raises:
            StorageError: If the upload fails
        """
        pass

    @abstractmethod
    async def delete(self, object_id: str) -> None:
        """
        Delete stored content.

        Raises:
            StorageError: If the deletion fails
        """
        pass

    @abstractmethod
    async def get(self, object_id: str) -> bytes:
        """
        Read stored content back.

        Raises:
            StorageError: If the object cannot be read
        """
        pass

    async def health_check(self) -> Dict[str, Any]:
        """Report backend health."""
        return {
            "status": "unknown",
            "type": "object_storage"
        }


def get_blob_store(request: Request) -> BlobStore:
    """FastAPI dependency returning the store attached at startup."""
    return request.app.state.blob_store

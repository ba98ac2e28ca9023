"""
Storage package for document content.
"""

from .blob_store import BlobStore, StoredObject, get_blob_store
from .minio_client import MinIOClient

__all__ = ["BlobStore", "StoredObject", "get_blob_store", "MinIOClient"]

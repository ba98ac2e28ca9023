"""
Unit tests for the BlobStore interface and the in-memory test store
"""

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from docsign.core.exceptions import StorageError
from docsign.storage.blob_store import BlobStore, StoredObject, get_blob_store


class InMemoryBlobStore(BlobStore):
    """BlobStore keeping objects in a dict, with switchable failures."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.puts: List[str] = []
        self.deletes: List[str] = []
        self.fail_put = False
        self.fail_delete = False
        self._counter = 0

    async def put(self, data: bytes, content_type: str,
                  suggested_name: str) -> StoredObject:
        if self.fail_put:
            raise StorageError(f"Failed to upload {suggested_name}")
        self._counter += 1
        object_id = f"documents/{self._counter}_{suggested_name}"
        self.objects[object_id] = data
        self.puts.append(object_id)
        return StoredObject(url=f"memory://{object_id}", id=object_id)

    async def delete(self, object_id: str) -> None:
        self.deletes.append(object_id)
        if self.fail_delete:
            raise StorageError(f"Failed to delete {object_id}", object_id=object_id)
        self.objects.pop(object_id, None)

    async def get(self, object_id: str) -> bytes:
        if object_id not in self.objects:
            raise StorageError(f"Failed to download {object_id}", object_id=object_id)
        return self.objects[object_id]

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "type": "memory"}


class BareBlobStore(BlobStore):
    async def put(self, data, content_type, suggested_name):
        return StoredObject(url="", id="")

    async def delete(self, object_id):
        return None

    async def get(self, object_id):
        return b""


def test_blob_store_is_abstract():
    """Test that the interface cannot be instantiated directly"""
    with pytest.raises(TypeError):
        BlobStore()


@pytest.mark.asyncio
async def test_default_health_check_is_unknown():
    """Test health check fallback for stores that do not override it"""
    health = await BareBlobStore().health_check()

    assert health["status"] == "unknown"


def test_get_blob_store_reads_app_state():
    """Test that the dependency returns the store attached at startup"""
    store = InMemoryBlobStore()
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(blob_store=store)))

    assert get_blob_store(request) is store


def test_stored_object_is_immutable():
    stored = StoredObject(url="memory://a", id="a")

    with pytest.raises(AttributeError):
        stored.id = "b"


@pytest.mark.asyncio
async def test_in_memory_store_put_get_delete():
    """Test the in-memory store used by the rest of the suite"""
    store = InMemoryBlobStore()

    stored = await store.put(b"%PDF-1.4", "application/pdf", "nda.pdf")
    assert stored.url == f"memory://{stored.id}"
    assert await store.get(stored.id) == b"%PDF-1.4"

    await store.delete(stored.id)
    with pytest.raises(StorageError):
        await store.get(stored.id)


@pytest.mark.asyncio
async def test_in_memory_store_failure_switches():
    store = InMemoryBlobStore()
    store.fail_put = True
    store.fail_delete = True

    with pytest.raises(StorageError):
        await store.put(b"data", "application/pdf", "nda.pdf")
    with pytest.raises(StorageError):
        await store.delete("documents/missing")

    assert store.puts == []
    assert store.deletes == ["documents/missing"]

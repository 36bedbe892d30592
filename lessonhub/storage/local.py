"""
Local storage implementations for development and tests.

In-memory, no external services. A single lock serialises writes so the
atomic primitives hold under concurrent requests on one event loop.
"""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Iterable

from lessonhub.storage.base import DuplicateKeyError, MetadataStorage, StorageProvider


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._data.setdefault(collection, {})

    @staticmethod
    def _stamp(data: dict[str, Any], id: str) -> dict[str, Any]:
        return {
            **copy.deepcopy(data),
            "_id": id,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        async with self._lock:
            self._collection(collection)[id] = self._stamp(data, id)

    async def insert(
        self,
        collection: str,
        id: str,
        data: dict[str, Any],
        unique: Iterable[str] = (),
    ) -> None:
        async with self._lock:
            docs = self._collection(collection)
            if id in docs:
                raise DuplicateKeyError(collection, "_id", id)
            for field in unique:
                value = data.get(field)
                if any(doc.get(field) == value for doc in docs.values()):
                    raise DuplicateKeyError(collection, field, value)
            docs[id] = self._stamp(data, id)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def delete(self, collection: str, id: str) -> bool:
        async with self._lock:
            docs = self._data.get(collection, {})
            if id in docs:
                del docs[id]
                return True
            return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        results = list(self._data.get(collection, {}).values())

        if filters:
            results = [
                doc for doc in results
                if all(doc.get(key) == value for key, value in filters.items())
            ]

        return [copy.deepcopy(doc) for doc in results[offset:offset + limit]]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        return await self.update_if(collection, id, {}, updates)

    async def update_if(
        self,
        collection: str,
        id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        async with self._lock:
            doc = self._data.get(collection, {}).get(id)
            if doc is None:
                return False
            if any(doc.get(key) != value for key, value in expected.items()):
                return False
            doc.update(copy.deepcopy(updates))
            doc["_updated_at"] = datetime.now(timezone.utc).isoformat()
            return True


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with local implementations."""
    return StorageProvider(metadata=InMemoryMetadataStorage())

"""
Storage abstraction layer.

All persistence goes through these interfaces. This allows swapping
implementations (in-memory → MongoDB/PostgreSQL) without changing
application code.

Backends must make `insert` and `update_if` atomic. Email uniqueness and
single-use reset tokens rely on them rather than on check-then-write in
application code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable

from pydantic import BaseModel


class DuplicateKeyError(Exception):
    """A unique field value is already taken in the collection."""

    def __init__(self, collection: str, field: str, value: Any):
        self.collection = collection
        self.field = field
        self.value = value
        super().__init__(f"Duplicate {field} in {collection}")


# =============================================================================
# Storage Interfaces
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured records.

    Production Implementation: MongoDB / PostgreSQL with unique indexes
    Local Implementation: in-memory
    """

    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save (upsert) a document to a collection."""
        pass

    @abstractmethod
    async def insert(
        self,
        collection: str,
        id: str,
        data: dict[str, Any],
        unique: Iterable[str] = (),
    ) -> None:
        """
        Insert a new document.

        Raises DuplicateKeyError if the id exists or any document in the
        collection already has the same value for one of the `unique` fields.
        The check and the write happen as one step.
        """
        pass

    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents with optional equality filters."""
        pass

    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a document."""
        pass

    @abstractmethod
    async def update_if(
        self,
        collection: str,
        id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """
        Compare-and-set.

        Apply `updates` only if every field in `expected` still holds the
        given value. Returns False (and writes nothing) otherwise.
        """
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for storage backends.

    Initialize once at app startup with appropriate implementations.
    Services receive this and use the interfaces without knowing
    the underlying implementation.
    """

    model_config = {"arbitrary_types_allowed": True}

    metadata: MetadataStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection/table names."""

    USERS = "users"

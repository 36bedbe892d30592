"""
Storage abstractions.

Integration Points:
- MetadataStorage → MongoDB / PostgreSQL (unique index on users.email)
- UserStore → credential store adapter over MetadataStorage
"""

from lessonhub.storage.base import (
    Collections,
    DuplicateKeyError,
    MetadataStorage,
    StorageProvider,
)
from lessonhub.storage.local import InMemoryMetadataStorage, create_local_storage
from lessonhub.storage.users import UserStore

__all__ = [
    "MetadataStorage",
    "StorageProvider",
    "Collections",
    "DuplicateKeyError",
    "InMemoryMetadataStorage",
    "UserStore",
    "create_local_storage",
]

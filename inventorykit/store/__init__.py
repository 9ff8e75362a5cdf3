"""Store-access clients used by the reconciler."""

from .client import (
    StoreClient,
    StoreError,
    NotFoundError,
    AlreadyExistsError,
)
from .memory_client import InMemoryStoreClient
from .postgres_client import PostgresStoreClient

__all__ = [
    "StoreClient",
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "InMemoryStoreClient",
    "PostgresStoreClient",
]

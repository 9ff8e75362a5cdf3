"""
Abstract store-access interface.

The reconciler only needs CRUD plus list-by-kind from persistence. Implement
this interface with a concrete backend (see PostgresStoreClient and
InMemoryStoreClient). Contract:

- create() and update() fully replace the persisted record
- list() returns every current record of a kind; no pagination is assumed
- serial-number uniqueness is NOT enforced here; that is the reconciler's job
"""

from typing import List

from ..resources.base import Resource


class StoreError(Exception):
    """A store operation failed."""


class NotFoundError(StoreError):
    """The requested record does not exist."""

    def __init__(self, kind: str, uid: str):
        super().__init__(f"{kind} {uid!r} not found")
        self.kind = kind
        self.uid = uid


class AlreadyExistsError(StoreError):
    """A record with the same kind and uid already exists."""

    def __init__(self, kind: str, uid: str):
        super().__init__(f"{kind} {uid!r} already exists")
        self.kind = kind
        self.uid = uid


class StoreClient:
    """
    Abstract store client.

    All methods are synchronous from the caller's point of view and every
    mutation is durable when the call returns.
    """

    def get(self, kind: str, uid: str) -> Resource:
        """
        Fetch one record.

        Args:
            kind: Resource kind (e.g. "Device")
            uid: Resource uid

        Returns:
            The decoded resource

        Raises:
            NotFoundError: If no such record exists
            StoreError: On backend failure
        """
        raise NotImplementedError

    def list(self, kind: str) -> List[Resource]:
        """
        Return all records of a kind.

        Raises:
            StoreError: On backend failure
        """
        raise NotImplementedError

    def create(self, resource: Resource) -> None:
        """
        Persist a new record.

        Raises:
            AlreadyExistsError: If a record with this kind and uid exists
            StoreError: On backend failure
        """
        raise NotImplementedError

    def update(self, resource: Resource) -> None:
        """
        Replace an existing record.

        Raises:
            NotFoundError: If no record with this kind and uid exists
            StoreError: On backend failure
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources. No-op by default."""

"""In-process store client, for tests and single-process deployments."""

import copy
import logging
import threading
from typing import Any, Dict, List

from ..resources.base import Resource, decode_resource
from .client import AlreadyExistsError, NotFoundError, StoreClient

logger = logging.getLogger(__name__)


class InMemoryStoreClient(StoreClient):
    """
    StoreClient backed by a dict of serialized envelopes.

    Records are stored as wire dicts, so callers never share mutable state
    with the store: mutating a resource after create() has no effect until
    update() is called.
    """

    def __init__(self):
        # kind -> uid -> envelope dict (insertion ordered)
        self._records: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, kind: str, uid: str) -> Resource:
        with self._lock:
            data = self._records.get(kind, {}).get(uid)
            if data is None:
                raise NotFoundError(kind, uid)
            return decode_resource(copy.deepcopy(data))

    def list(self, kind: str) -> List[Resource]:
        with self._lock:
            items = [copy.deepcopy(d) for d in self._records.get(kind, {}).values()]
        return [decode_resource(d) for d in items]

    def create(self, resource: Resource) -> None:
        data = copy.deepcopy(resource.to_dict())
        with self._lock:
            bucket = self._records.setdefault(resource.kind, {})
            if resource.uid in bucket:
                raise AlreadyExistsError(resource.kind, resource.uid)
            bucket[resource.uid] = data
        logger.debug(f"Created {resource.kind} {resource.uid}")

    def update(self, resource: Resource) -> None:
        data = copy.deepcopy(resource.to_dict())
        with self._lock:
            bucket = self._records.get(resource.kind, {})
            if resource.uid not in bucket:
                raise NotFoundError(resource.kind, resource.uid)
            bucket[resource.uid] = data
        logger.debug(f"Updated {resource.kind} {resource.uid}")

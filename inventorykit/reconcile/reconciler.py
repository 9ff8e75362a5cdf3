"""
Reconcile entry point for DiscoverySnapshot resources.

The external controller calls SnapshotReconciler.reconcile() every time a
snapshot is created or updated. Delivery is at-least-once, so the entry point
must tolerate being called again for a snapshot it already finished: a
snapshot in phase Completed is returned immediately with no store calls.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import InvalidResourceType
from ..resources.snapshot import SNAPSHOT_KIND, DiscoverySnapshot
from ..store.client import StoreClient
from .context import ReconcileContext
from .state_machine import ReconcileSummary, SnapshotStateMachine

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconcile call."""
    summary: Optional[ReconcileSummary] = None
    # True when the snapshot was already Completed and nothing was done
    short_circuited: bool = False


class SnapshotReconciler:
    """Reconciler for the DiscoverySnapshot kind."""

    resource_kind = SNAPSHOT_KIND

    def __init__(self, store: StoreClient, state_machine: Optional[SnapshotStateMachine] = None):
        self.store = store
        self.state_machine = state_machine or SnapshotStateMachine(store)

    def reconcile(
        self,
        resource: Any,
        cancel_event: Optional[threading.Event] = None
    ) -> ReconcileResult:
        """
        Reconcile one delivered snapshot.

        Args:
            resource: A DiscoverySnapshot, or its envelope as a dict, JSON
                string or JSON bytes
            cancel_event: Optional event; once set, the next store call aborts

        Returns:
            ReconcileResult

        Raises:
            InvalidResourceType: The resource is not a DiscoverySnapshot
            PayloadDecodeError, StatusPersistError, IndexLoadError,
            ReconcileCancelled: see SnapshotStateMachine.run
        """
        snapshot = coerce_snapshot(resource)

        if snapshot.is_completed:
            logger.debug(f"Snapshot {snapshot.name} already Completed, nothing to do")
            return ReconcileResult(short_circuited=True)

        ctx = ReconcileContext(cancel_event=cancel_event)
        summary = self.state_machine.run(snapshot, ctx)
        return ReconcileResult(summary=summary)


def coerce_snapshot(resource: Any) -> DiscoverySnapshot:
    """
    Narrow a delivered resource to a DiscoverySnapshot.

    Raises:
        InvalidResourceType: If the resource is another type, another kind,
            or an envelope that cannot be decoded
    """
    if isinstance(resource, DiscoverySnapshot):
        return resource

    data = resource
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidResourceType(f"failed to unmarshal snapshot: {e}") from e
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidResourceType(f"failed to unmarshal snapshot: {e}") from e

    if not isinstance(data, dict):
        raise InvalidResourceType(
            f"received resource is not a {SNAPSHOT_KIND}, but {type(resource).__name__}"
        )
    if data.get("kind") != SNAPSHOT_KIND:
        raise InvalidResourceType(
            f"received resource of kind {data.get('kind')!r}, expected {SNAPSHOT_KIND!r}"
        )

    try:
        return DiscoverySnapshot.from_dict(data)
    except ValueError as e:
        raise InvalidResourceType(f"failed to unmarshal snapshot: {e}") from e

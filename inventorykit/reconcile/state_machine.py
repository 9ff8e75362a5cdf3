"""
Snapshot state machine.

Drives one DiscoverySnapshot through its phases:

    (unset) ──► Processing ──► Completed
                    │
                    └────────► Error      (rawData failed to decode)

and runs the two resolver passes in between:

1. Pass 1 (DeviceUpsertResolver): create/update one Device per descriptor,
   in payload order. A repeated serial number updates the device created
   earlier in the same pass (last write wins).
2. Pass 2 (ParentLinkResolver): link every device touched in pass 1 to its
   parent, against the index of all known devices.

Every status write is persisted immediately. A failed status write is fatal
(StatusPersistError): the reconciler must never report success without a
durable record of it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..errors import PayloadDecodeError, StatusPersistError
from ..resources.device import Device
from ..resources.snapshot import DiscoverySnapshot, SnapshotPhase, decode_device_payload
from ..store.client import StoreClient, StoreError
from .context import ReconcileContext
from .log import SnapshotLogAdapter, snapshot_logger
from .parent_link import ParentLinkResolver
from .upsert import DeviceUpsertResolver, build_device_index

logger = logging.getLogger(__name__)

STARTED_MESSAGE = "Reconciler has started processing the snapshot."
DECODE_ERROR_CONTEXT = "Failed to parse rawData"


@dataclass
class ReconcileSummary:
    """Counts accumulated over one run of the state machine."""
    processed_count: int = 0
    links_updated: int = 0
    skipped_count: int = 0   # descriptors without a serial number
    failed_count: int = 0    # descriptors whose create/update failed

    def message(self) -> str:
        text = (
            f"Snapshot processed successfully. {self.processed_count} devices created/updated, "
            f"{self.links_updated} parent links updated."
        )
        if self.skipped_count or self.failed_count:
            text += f" {self.skipped_count} skipped, {self.failed_count} failed."
        return text


class SnapshotStateMachine:
    """Phase transitions plus the two resolver passes for one snapshot."""

    def __init__(
        self,
        store: StoreClient,
        upserter: Optional[DeviceUpsertResolver] = None,
        linker: Optional[ParentLinkResolver] = None
    ):
        self.store = store
        self.upserter = upserter or DeviceUpsertResolver(store)
        self.linker = linker or ParentLinkResolver(store)

    def run(self, snapshot: DiscoverySnapshot, ctx: ReconcileContext) -> ReconcileSummary:
        """
        Process a non-completed snapshot end to end.

        Args:
            snapshot: The snapshot to process (mutated in place as status changes)
            ctx: Reconcile context (cancellation, clock)

        Returns:
            ReconcileSummary with the counts written to the status message

        Raises:
            PayloadDecodeError: rawData does not parse (status is set to Error first)
            StatusPersistError: A status write failed
            IndexLoadError: Listing existing devices failed
            ReconcileCancelled: Cancellation was requested
        """
        log = snapshot_logger(logger, snapshot.name)
        log.info(f"Received request for DiscoverySnapshot (UID: {snapshot.uid})")

        # ====================================================================
        # Transition 1: entry → Processing
        # ====================================================================
        self._set_status(snapshot, SnapshotPhase.PROCESSING, STARTED_MESSAGE, ctx, log)

        index = build_device_index(self.store, ctx, log)

        # ====================================================================
        # Transition 2: decode payload (→ Error on failure)
        # ====================================================================
        try:
            descriptors = decode_device_payload(snapshot.spec.raw_data)
        except PayloadDecodeError as e:
            log.error(f"Failed to parse snapshot rawData: {e}")
            self._set_status(snapshot, SnapshotPhase.ERROR, f"{DECODE_ERROR_CONTEXT}: {e}", ctx, log)
            raise

        summary = ReconcileSummary()

        # ====================================================================
        # Transition 3: pass 1, device upsert
        # ====================================================================
        batch: Dict[str, Device] = {}
        for descriptor in descriptors:
            serial = descriptor.serial_number
            if not serial:
                log.warning("Skipping device with no serial number")
                summary.skipped_count += 1
                continue

            device = self.upserter.upsert(descriptor, index, ctx, log)
            if device is None:
                summary.failed_count += 1
                continue

            # Later descriptors with the same serial see this record and update it
            index[serial] = device
            batch[serial] = device
            summary.processed_count += 1

        # ====================================================================
        # Transition 4: pass 2, parent links
        # ====================================================================
        summary.links_updated = self.linker.link(batch, index, ctx, log)

        # ====================================================================
        # Transition 5: exit → Completed
        # ====================================================================
        self._set_status(snapshot, SnapshotPhase.COMPLETED, summary.message(), ctx, log)
        log.info(
            f"Successfully reconciled: processed={summary.processed_count} "
            f"links={summary.links_updated} skipped={summary.skipped_count} "
            f"failed={summary.failed_count}"
        )
        return summary

    def _set_status(
        self,
        snapshot: DiscoverySnapshot,
        phase: SnapshotPhase,
        message: str,
        ctx: ReconcileContext,
        log: SnapshotLogAdapter
    ) -> None:
        snapshot.status.phase = phase
        snapshot.status.message = message
        snapshot.status.ready = phase is SnapshotPhase.COMPLETED
        snapshot.metadata.updated_at = ctx.now()

        ctx.check(f"writing status {phase.value}")
        try:
            self.store.update(snapshot)
        except StoreError as e:
            log.error(f"Failed to update snapshot status to {phase.value}: {e}", exc_info=True)
            raise StatusPersistError(
                f"failed to update snapshot status to {phase.value}: {e}"
            ) from e
        log.info(f"Phase -> {phase.value}")

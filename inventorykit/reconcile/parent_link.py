"""
Parent-link resolution (pass 2).

Turns each device's declarative ``parent_serial_number`` into a durable
``parent_id`` (the parent's uid). Runs only after pass 1 has created every
device in the payload, which is what lets a child listed before its parent
still be linked in the same reconcile.

Resolution reads the index only; it never depends on a link written
earlier in the same pass, so the order devices are visited in does not
matter. A device that is already linked to the right parent is left alone,
which makes a second run over the same inputs a no-op.
"""

import copy
import logging
from typing import Dict

from ..resources.device import Device
from ..store.client import StoreClient, StoreError
from .context import ReconcileContext
from .upsert import DeviceIndex, Log

logger = logging.getLogger(__name__)


class ParentLinkResolver:
    """Resolves parent serial numbers to parent uids for a batch of devices."""

    def __init__(self, store: StoreClient):
        self.store = store

    def link(
        self,
        batch: Dict[str, Device],
        index: DeviceIndex,
        ctx: ReconcileContext,
        log: Log = logger
    ) -> int:
        """
        Link every device in ``batch`` to its parent.

        A device whose link is written successfully is updated in place, so
        the batch reflects what is stored.

        Args:
            batch: Devices touched in pass 1, keyed by serial number
            index: Every known device (batch plus pre-existing), keyed by serial
            ctx: Reconcile context (cancellation, clock)
            log: Logger to report decisions on

        Returns:
            Number of parent links written

        Raises:
            ReconcileCancelled: If cancellation was requested
        """
        links_updated = 0

        for serial, device in batch.items():
            parent_serial = device.spec.parent_serial_number
            if not parent_serial:
                continue  # root device

            parent = index.get(parent_serial)
            if parent is None:
                # Orphan; a later snapshot that supplies the parent will link it
                log.warning(
                    f"Parent serial={parent_serial} not found for device serial={serial}, "
                    f"leaving unlinked",
                    extra={"serial": serial},
                )
                continue

            if device.spec.parent_id == parent.uid:
                log.debug(
                    f"Device serial={serial} already linked to parent {parent.uid}",
                    extra={"serial": serial},
                )
                continue

            log.info(
                f"Linking device serial={serial} to parent serial={parent_serial} (UID: {parent.uid})",
                extra={"serial": serial},
            )
            linked = copy.deepcopy(device)
            linked.spec.parent_id = parent.uid
            linked.metadata.updated_at = ctx.now()

            ctx.check("linking device")
            try:
                self.store.update(linked)
            except StoreError as e:
                log.error(
                    f"Failed to link device serial={serial} to parent {parent.uid}: {e}",
                    extra={"serial": serial},
                )
                continue

            device.spec.parent_id = linked.spec.parent_id
            device.metadata.updated_at = linked.metadata.updated_at
            links_updated += 1

        return links_updated

"""
Device upsert resolution (pass 1).

For each incoming device descriptor this decides create vs. update against
an index of known devices keyed by serial number:

- Serial not in the index → create a new Device (new uid, name = serial)
- Serial in the index     → replace the spec of the existing Device, keeping
                             its uid and its resolved parent_id

A failure for one descriptor is logged and that descriptor is skipped; the
index and the store are left exactly as they were.
"""

import copy
import logging
from typing import Dict, Optional, Union

from ..errors import IndexLoadError
from ..resources.device import DEVICE_KIND, Device, DeviceSpec
from ..store.client import StoreClient, StoreError
from .context import ReconcileContext
from .log import SnapshotLogAdapter

logger = logging.getLogger(__name__)

DeviceIndex = Dict[str, Device]
Log = Union[logging.Logger, SnapshotLogAdapter]


def build_device_index(store: StoreClient, ctx: ReconcileContext, log: Log = logger) -> DeviceIndex:
    """
    Load every stored Device into a serial-number index.

    Items that are not Devices, and Devices without a serial number, are
    skipped with an error log.

    Raises:
        IndexLoadError: If listing devices fails
        ReconcileCancelled: If cancellation was requested
    """
    ctx.check("listing devices")
    try:
        items = store.list(DEVICE_KIND)
    except StoreError as e:
        raise IndexLoadError(f"failed to build device map: {e}") from e

    index: DeviceIndex = {}
    for item in items:
        if not isinstance(item, Device):
            log.error(f"Found non-device item in storage ({type(item).__name__}), skipping")
            continue
        serial = item.spec.serial_number
        if not serial:
            log.error(f"Stored device {item.uid} has no serial number, skipping")
            continue
        if serial in index:
            log.warning(
                f"Serial {serial} is stored on both {index[serial].uid} and {item.uid}; "
                f"using {item.uid}",
                extra={"serial": serial},
            )
        index[serial] = item

    log.info(f"Loaded {len(index)} existing devices into map")
    return index


class DeviceUpsertResolver:
    """Creates or updates one Device per descriptor."""

    def __init__(self, store: StoreClient):
        self.store = store

    def upsert(
        self,
        descriptor: DeviceSpec,
        index: DeviceIndex,
        ctx: ReconcileContext,
        log: Log = logger
    ) -> Optional[Device]:
        """
        Create or update the Device described by ``descriptor``.

        The index is only read here; the caller records the returned device.

        Args:
            descriptor: Incoming device descriptor from the snapshot payload
            index: Known devices keyed by serial number
            ctx: Reconcile context (cancellation, clock)
            log: Logger to report decisions on

        Returns:
            The persisted Device, or None if the descriptor was skipped

        Raises:
            ReconcileCancelled: If cancellation was requested
        """
        existing = index.get(descriptor.serial_number)
        if existing is None:
            return self._create(descriptor, ctx, log)
        return self._update(existing, descriptor, ctx, log)

    def _create(self, descriptor: DeviceSpec, ctx: ReconcileContext, log: Log) -> Optional[Device]:
        serial = descriptor.serial_number

        try:
            device = Device.new(copy.deepcopy(descriptor), now=ctx.now())
        except ValueError as e:
            log.error(f"Failed to generate UID for device serial={serial}: {e}", extra={"serial": serial})
            return None

        if not _is_valid(device, log):
            return None

        log.info(f"Creating new device: serial={serial}", extra={"serial": serial})
        ctx.check("creating device")
        try:
            self.store.create(device)
        except StoreError as e:
            log.error(f"Failed to create device serial={serial}: {e}", extra={"serial": serial})
            return None

        return device

    def _update(
        self,
        existing: Device,
        descriptor: DeviceSpec,
        ctx: ReconcileContext,
        log: Log
    ) -> Optional[Device]:
        serial = descriptor.serial_number

        # Work on a copy so a failed write leaves the indexed record untouched
        updated = copy.deepcopy(existing)
        updated.spec = copy.deepcopy(descriptor)
        # Payloads never carry a resolved parent; keep the link from earlier snapshots
        updated.spec.parent_id = existing.spec.parent_id
        updated.metadata.updated_at = ctx.now()

        if not _is_valid(updated, log):
            return None

        log.info(
            f"Updating existing device: serial={serial} (UID: {existing.uid})",
            extra={"serial": serial},
        )
        ctx.check("updating device")
        try:
            self.store.update(updated)
        except StoreError as e:
            log.error(f"Failed to update device serial={serial}: {e}", extra={"serial": serial})
            return None

        return updated


def _is_valid(device: Device, log: Log) -> bool:
    serial = device.spec.serial_number
    try:
        device.validate()
    except ValueError as e:
        log.warning(f"Skipping invalid device serial={serial}: {e}", extra={"serial": serial})
        return False
    return True

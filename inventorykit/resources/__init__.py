"""Inventory resource types and the shared resource envelope."""

from .base import (
    Resource,
    ResourceMetadata,
    decode_resource,
    generate_uid,
    register_resource,
    resource_class_for,
    utcnow,
)
from .device import DEVICE_KIND, Device, DeviceSpec, DeviceStatus
from .snapshot import (
    SNAPSHOT_KIND,
    DiscoverySnapshot,
    SnapshotPhase,
    SnapshotSpec,
    SnapshotStatus,
    decode_device_payload,
)

__all__ = [
    "Resource",
    "ResourceMetadata",
    "decode_resource",
    "generate_uid",
    "register_resource",
    "resource_class_for",
    "utcnow",
    "DEVICE_KIND",
    "Device",
    "DeviceSpec",
    "DeviceStatus",
    "SNAPSHOT_KIND",
    "DiscoverySnapshot",
    "SnapshotPhase",
    "SnapshotSpec",
    "SnapshotStatus",
    "decode_device_payload",
]

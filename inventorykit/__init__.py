from .resources import Device, DeviceSpec, DiscoverySnapshot, SnapshotPhase
from .store import StoreClient, InMemoryStoreClient, PostgresStoreClient
from .reconcile import SnapshotReconciler, SnapshotStateMachine, DeviceUpsertResolver, ParentLinkResolver
from .errors import (
    ReconcileError,
    InvalidResourceType,
    PayloadDecodeError,
    StatusPersistError,
    IndexLoadError,
    ReconcileCancelled,
)
from .config import InventoryConfig, configure_logging
from .service import build_snapshot_reconciler, create_store

__all__ = [
    "Device",
    "DeviceSpec",
    "DiscoverySnapshot",
    "SnapshotPhase",
    "StoreClient",
    "InMemoryStoreClient",
    "PostgresStoreClient",
    "SnapshotReconciler",
    "SnapshotStateMachine",
    "DeviceUpsertResolver",
    "ParentLinkResolver",
    "ReconcileError",
    "InvalidResourceType",
    "PayloadDecodeError",
    "StatusPersistError",
    "IndexLoadError",
    "ReconcileCancelled",
    "InventoryConfig",
    "configure_logging",
    "build_snapshot_reconciler",
    "create_store",
]

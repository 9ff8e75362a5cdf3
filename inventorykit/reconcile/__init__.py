"""Discovery snapshot reconciliation."""

from .context import ReconcileContext
from .parent_link import ParentLinkResolver
from .reconciler import ReconcileResult, SnapshotReconciler, coerce_snapshot
from .state_machine import ReconcileSummary, SnapshotStateMachine
from .upsert import DeviceUpsertResolver, build_device_index

__all__ = [
    "ReconcileContext",
    "ParentLinkResolver",
    "ReconcileResult",
    "SnapshotReconciler",
    "coerce_snapshot",
    "ReconcileSummary",
    "SnapshotStateMachine",
    "DeviceUpsertResolver",
    "build_device_index",
]

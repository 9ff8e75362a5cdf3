import json
from typing import Any

import pytest

from inventorykit.resources import DiscoverySnapshot
from inventorykit.reconcile import ReconcileContext, SnapshotReconciler

from helpers import RecordingStore


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def reconciler(store):
    return SnapshotReconciler(store)


@pytest.fixture
def ctx():
    return ReconcileContext()


@pytest.fixture
def make_snapshot(store):
    """Create and persist a snapshot for a payload (list of dicts or raw text)."""
    def _make(payload: Any, name: str = "snapshot-test") -> DiscoverySnapshot:
        raw = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        snapshot = DiscoverySnapshot.new(name, raw)
        store.seed(snapshot)
        return snapshot
    return _make

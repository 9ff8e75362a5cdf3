"""Test doubles and payload builders shared by the test suite."""

from typing import Any, Dict, List, Set

from inventorykit.resources import DEVICE_KIND, Device, DiscoverySnapshot, SnapshotPhase
from inventorykit.store import InMemoryStoreClient, StoreError


class RecordingStore(InMemoryStoreClient):
    """
    In-memory store that records every call and can be told to fail.

    - fail_create / fail_update: serial numbers whose Device writes fail
    - fail_status_phases: snapshot phases whose status write fails
    - fail_list: make list() fail
    """

    def __init__(self):
        super().__init__()
        self.calls: List[tuple] = []
        self.fail_create: Set[str] = set()
        self.fail_update: Set[str] = set()
        self.fail_status_phases: Set[SnapshotPhase] = set()
        self.fail_list = False

    def get(self, kind, uid):
        self.calls.append(("get", kind, uid))
        return super().get(kind, uid)

    def list(self, kind):
        self.calls.append(("list", kind, None))
        if self.fail_list:
            raise StoreError("list unavailable")
        return super().list(kind)

    def create(self, resource):
        self.calls.append(("create", resource.kind, resource.uid))
        if isinstance(resource, Device) and resource.spec.serial_number in self.fail_create:
            raise StoreError(f"create refused for {resource.spec.serial_number}")
        super().create(resource)

    def update(self, resource):
        self.calls.append(("update", resource.kind, resource.uid))
        if isinstance(resource, Device) and resource.spec.serial_number in self.fail_update:
            raise StoreError(f"update refused for {resource.spec.serial_number}")
        if isinstance(resource, DiscoverySnapshot) and resource.status.phase in self.fail_status_phases:
            raise StoreError(f"status write refused for {resource.status.phase.value}")
        super().update(resource)

    # Inspection helpers below bypass call recording

    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("create", "update")]

    def count(self, kind: str) -> int:
        return len(InMemoryStoreClient.list(self, kind))

    def devices_by_serial(self) -> Dict[str, Device]:
        return {d.spec.serial_number: d for d in InMemoryStoreClient.list(self, DEVICE_KIND)}

    def stored_snapshot(self, snapshot: DiscoverySnapshot) -> DiscoverySnapshot:
        return InMemoryStoreClient.get(self, snapshot.kind, snapshot.uid)

    def seed(self, resource) -> None:
        InMemoryStoreClient.create(self, resource)


def descriptor(serial: str, parent: str = "", **fields: Any) -> Dict[str, Any]:
    """Build one payload descriptor dict."""
    data = {"deviceType": fields.pop("deviceType", "Node"), "serialNumber": serial}
    if parent:
        data["parentSerialNumber"] = parent
    data.update(fields)
    return data

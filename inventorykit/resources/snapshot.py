"""
DiscoverySnapshot resource.

A snapshot is one batch job: ``spec.raw_data`` carries an opaque serialized
JSON array of device descriptors collected by a discovery tool. The payload
is only validated when the reconciler decodes it.

Status progresses through SnapshotPhase. Once a snapshot reaches COMPLETED
it is terminal and must never be reprocessed.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..errors import PayloadDecodeError
from .base import (
    Resource,
    ResourceMetadata,
    generate_uid,
    register_resource,
    utcnow,
    _require_bool,
    _require_str,
)
from .device import DeviceSpec

SNAPSHOT_KIND = "DiscoverySnapshot"


class SnapshotPhase(Enum):
    """
    Snapshot processing phase.

    UNSET is the phase of a freshly created snapshot. COMPLETED and ERROR are
    terminal for a given payload.
    """
    UNSET = ""
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (SnapshotPhase.COMPLETED, SnapshotPhase.ERROR)


@dataclass
class SnapshotSpec:
    raw_data: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"rawData": self.raw_data}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SnapshotSpec":
        if not isinstance(data, dict):
            raise ValueError("snapshot spec must be an object")
        raw = data.get("rawData")
        if raw is None:
            raw = ""
        elif isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        elif not isinstance(raw, str):
            # Envelope embedded the array directly; keep it opaque as text
            raw = json.dumps(raw, separators=(",", ":"))
        return cls(raw_data=raw)


@dataclass
class SnapshotStatus:
    phase: SnapshotPhase = SnapshotPhase.UNSET
    message: str = ""
    ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"ready": self.ready}
        if self.phase is not SnapshotPhase.UNSET:
            data["phase"] = self.phase.value
        if self.message:
            data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SnapshotStatus":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("snapshot status must be an object")
        phase = _require_str(data, "phase")
        try:
            parsed = SnapshotPhase(phase)
        except ValueError:
            raise ValueError(f"unknown snapshot phase {phase!r}") from None
        return cls(
            phase=parsed,
            message=_require_str(data, "message"),
            ready=_require_bool(data, "ready"),
        )


@register_resource(SNAPSHOT_KIND, "snap")
@dataclass
class DiscoverySnapshot(Resource):
    """DiscoverySnapshot resource: metadata + spec + status."""
    metadata: ResourceMetadata = field(default_factory=ResourceMetadata)
    spec: SnapshotSpec = field(default_factory=SnapshotSpec)
    status: SnapshotStatus = field(default_factory=SnapshotStatus)

    @classmethod
    def new(cls, name: str, raw_data: Union[str, bytes, List[Any]]) -> "DiscoverySnapshot":
        """
        Build a new, unprocessed snapshot.

        Args:
            name: Snapshot name
            raw_data: Serialized payload, or a list of descriptor dicts to serialize
        """
        now = utcnow()
        metadata = ResourceMetadata(
            uid=generate_uid(SNAPSHOT_KIND),
            name=name,
            created_at=now,
            updated_at=now,
        )
        return cls(metadata=metadata, spec=SnapshotSpec.from_dict({"rawData": raw_data}))

    @property
    def is_completed(self) -> bool:
        return self.status.phase is SnapshotPhase.COMPLETED

    def _body_to_dict(self) -> Dict[str, Any]:
        return {"spec": self.spec.to_dict(), "status": self.status.to_dict()}

    @classmethod
    def _from_body(cls, metadata: ResourceMetadata, data: Dict[str, Any]) -> "DiscoverySnapshot":
        return cls(
            metadata=metadata,
            spec=SnapshotSpec.from_dict(data.get("spec") or {}),
            status=SnapshotStatus.from_dict(data.get("status")),
        )


def decode_device_payload(raw_data: Union[str, bytes, None]) -> List[DeviceSpec]:
    """
    Decode a snapshot's rawData into device descriptors, in payload order.

    An empty payload or JSON ``null`` decodes to no descriptors.

    Args:
        raw_data: Serialized JSON array of device descriptor objects

    Returns:
        List of DeviceSpec, one per descriptor

    Raises:
        PayloadDecodeError: If rawData is not valid JSON, not an array, or any
            descriptor has the wrong shape
    """
    if raw_data is None:
        return []
    if isinstance(raw_data, bytes):
        try:
            raw_data = raw_data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadDecodeError(f"rawData is not valid UTF-8: {e}") from e
    if not raw_data.strip():
        return []

    try:
        items = json.loads(raw_data)
    except json.JSONDecodeError as e:
        raise PayloadDecodeError(f"rawData is not valid JSON: {e}") from e

    if items is None:
        return []
    if not isinstance(items, list):
        raise PayloadDecodeError(
            f"rawData must be a JSON array of devices, got {type(items).__name__}"
        )

    specs = []
    for position, item in enumerate(items):
        try:
            specs.append(DeviceSpec.from_dict(item))
        except ValueError as e:
            raise PayloadDecodeError(f"device at index {position}: {e}") from e
    return specs

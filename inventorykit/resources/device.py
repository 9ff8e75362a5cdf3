"""
Device resource.

A Device represents one physical unit. Its spec is declarative desired
state and is replaced wholesale on every sighting in a discovery snapshot,
with one exception: ``parent_id`` is a resolved reference that only the
parent-link pass writes.

Identity:
- ``metadata.uid`` is opaque and assigned once at creation
- ``spec.serial_number`` is the business key used to join snapshots
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .base import (
    Resource,
    ResourceMetadata,
    generate_uid,
    register_resource,
    utcnow,
    _require_bool,
    _require_str,
)

DEVICE_KIND = "Device"


@dataclass
class DeviceSpec:
    """
    Desired state of a Device, and also the shape of one descriptor in a
    snapshot payload.

    parent_id holds the UID of the parent device. It is populated by the
    reconciler, never by the payload.
    """
    device_type: str = ""
    manufacturer: str = ""
    part_number: str = ""
    serial_number: str = ""
    parent_id: str = ""
    parent_serial_number: str = ""
    # Arbitrary key/value map for non-standard attributes (any JSON value)
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "deviceType": self.device_type,
            "serialNumber": self.serial_number,
        }
        if self.manufacturer:
            data["manufacturer"] = self.manufacturer
        if self.part_number:
            data["partNumber"] = self.part_number
        if self.parent_id:
            data["parentID"] = self.parent_id
        if self.parent_serial_number:
            data["parentSerialNumber"] = self.parent_serial_number
        if self.properties:
            data["properties"] = dict(self.properties)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceSpec":
        """
        Decode one device descriptor.

        Unknown keys are ignored and missing keys default to empty. A field
        with the wrong JSON type is an error, since the whole payload is
        rejected rather than silently coerced.

        Raises:
            ValueError: If data is not an object or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"device descriptor must be an object, got {type(data).__name__}")
        properties = data.get("properties")
        if properties is None:
            properties = {}
        elif not isinstance(properties, dict):
            raise ValueError("field 'properties' must be an object")
        return cls(
            device_type=_require_str(data, "deviceType"),
            manufacturer=_require_str(data, "manufacturer"),
            part_number=_require_str(data, "partNumber"),
            serial_number=_require_str(data, "serialNumber"),
            parent_id=_require_str(data, "parentID"),
            parent_serial_number=_require_str(data, "parentSerialNumber"),
            properties=dict(properties),
        )


@dataclass
class DeviceStatus:
    """Observed state of a Device."""
    phase: str = ""
    message: str = ""
    ready: bool = False
    # Devices contained within this one. Maintained by a different
    # reconciler; carried through unchanged here.
    children_device_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"ready": self.ready}
        if self.phase:
            data["phase"] = self.phase
        if self.message:
            data["message"] = self.message
        if self.children_device_ids:
            data["childrenDeviceIds"] = list(self.children_device_ids)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DeviceStatus":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("device status must be an object")
        children = data.get("childrenDeviceIds") or []
        if not isinstance(children, list) or not all(isinstance(c, str) for c in children):
            raise ValueError("field 'childrenDeviceIds' must be a list of strings")
        return cls(
            phase=_require_str(data, "phase"),
            message=_require_str(data, "message"),
            ready=_require_bool(data, "ready"),
            children_device_ids=list(children),
        )


@register_resource(DEVICE_KIND, "dev")
@dataclass
class Device(Resource):
    """Device resource: metadata + spec + status."""
    metadata: ResourceMetadata = field(default_factory=ResourceMetadata)
    spec: DeviceSpec = field(default_factory=DeviceSpec)
    status: DeviceStatus = field(default_factory=DeviceStatus)

    @classmethod
    def new(cls, spec: DeviceSpec, now: Optional[datetime] = None) -> "Device":
        """
        Build a brand new Device for a first sighting of a serial number.

        The name is set to the serial number and both timestamps to ``now``.

        Raises:
            ValueError: If a uid cannot be generated
        """
        now = now or utcnow()
        metadata = ResourceMetadata(
            uid=generate_uid(DEVICE_KIND),
            name=spec.serial_number,
            created_at=now,
            updated_at=now,
        )
        return cls(metadata=metadata, spec=spec)

    def validate(self) -> None:
        """Raise ValueError if the device cannot be stored."""
        if not self.spec.serial_number:
            raise ValueError("device serialNumber is required")

    def _body_to_dict(self) -> Dict[str, Any]:
        return {"spec": self.spec.to_dict(), "status": self.status.to_dict()}

    @classmethod
    def _from_body(cls, metadata: ResourceMetadata, data: Dict[str, Any]) -> "Device":
        return cls(
            metadata=metadata,
            spec=DeviceSpec.from_dict(data.get("spec") or {}),
            status=DeviceStatus.from_dict(data.get("status")),
        )

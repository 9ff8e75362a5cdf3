"""
Resource envelope shared by every persisted inventory record.

Every record stored through a StoreClient carries the same envelope:

    {
        "apiVersion": "v1",
        "kind": "Device",
        "schemaVersion": "v1",
        "metadata": {"uid": "dev-1a2b3c4d", "name": "...", ...},
        "spec": {...},
        "status": {...}
    }

Kinds register themselves with a short uid prefix so that uids are
recognisable at a glance (``dev-...`` for devices, ``snap-...`` for
snapshots) and so that decode_resource() can turn a stored dict back into
the right class.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Type, TypeVar
from uuid import uuid4

API_VERSION = "v1"
SCHEMA_VERSION = "v1"

# kind -> (uid prefix, resource class)
_RESOURCE_REGISTRY: Dict[str, Any] = {}

R = TypeVar("R", bound="Resource")


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be an ISO-8601 string, got {type(value).__name__}")
    # fromisoformat() before 3.11 does not accept a trailing "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def register_resource(kind: str, prefix: str) -> Callable[[Type[R]], Type[R]]:
    """
    Class decorator registering a resource kind and its uid prefix.

    Args:
        kind: Resource kind as it appears in the envelope (e.g. "Device")
        prefix: Short uid prefix (e.g. "dev")
    """
    def decorator(cls: Type[R]) -> Type[R]:
        _RESOURCE_REGISTRY[kind] = (prefix, cls)
        cls.KIND = kind
        return cls
    return decorator


def resource_class_for(kind: str) -> Type["Resource"]:
    """Return the registered class for a kind, or raise ValueError."""
    try:
        return _RESOURCE_REGISTRY[kind][1]
    except KeyError:
        raise ValueError(f"Unknown resource kind: {kind!r}") from None


def generate_uid(kind: str) -> str:
    """
    Generate a new uid for a registered resource kind.

    Uids look like ``dev-1a2b3c4d``. They are assigned once at creation and
    never change.

    Raises:
        ValueError: If the kind has not been registered
    """
    if kind not in _RESOURCE_REGISTRY:
        raise ValueError(f"Cannot generate uid for unregistered kind {kind!r}")
    prefix = _RESOURCE_REGISTRY[kind][0]
    return f"{prefix}-{uuid4().hex[:8]}"


def decode_resource(data: Dict[str, Any]) -> "Resource":
    """
    Decode a stored envelope dict into its registered resource class.

    Raises:
        ValueError: If the dict is not an envelope or its kind is unknown
    """
    if not isinstance(data, dict):
        raise ValueError(f"resource envelope must be an object, got {type(data).__name__}")
    cls = resource_class_for(data.get("kind", ""))
    return cls.from_dict(data)


@dataclass
class ResourceMetadata:
    """Identity and bookkeeping fields common to all resources."""
    uid: str = ""
    name: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"uid": self.uid, "name": self.name}
        if self.labels:
            data["labels"] = dict(self.labels)
        data["createdAt"] = _format_timestamp(self.created_at)
        data["updatedAt"] = _format_timestamp(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ResourceMetadata":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("metadata must be an object")
        labels = data.get("labels") or {}
        if not isinstance(labels, dict):
            raise ValueError("metadata.labels must be an object")
        return cls(
            uid=_require_str(data, "uid"),
            name=_require_str(data, "name"),
            labels=dict(labels),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )


class Resource:
    """
    Base class for inventory resources.

    Subclasses are dataclasses that add ``spec`` and ``status`` and
    implement ``_body_to_dict`` / ``_from_body``.
    """

    KIND = ""

    metadata: ResourceMetadata

    @property
    def kind(self) -> str:
        return self.KIND

    @property
    def uid(self) -> str:
        return self.metadata.uid

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire envelope."""
        data = {
            "apiVersion": API_VERSION,
            "kind": self.KIND,
            "schemaVersion": SCHEMA_VERSION,
            "metadata": self.metadata.to_dict(),
        }
        data.update(self._body_to_dict())
        return data

    @classmethod
    def from_dict(cls: Type[R], data: Dict[str, Any]) -> R:
        """
        Decode a wire envelope.

        Raises:
            ValueError: If the envelope is for another kind or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"{cls.KIND} envelope must be an object")
        kind = data.get("kind")
        if kind != cls.KIND:
            raise ValueError(f"expected kind {cls.KIND!r}, got {kind!r}")
        metadata = ResourceMetadata.from_dict(data.get("metadata"))
        return cls._from_body(metadata, data)

    def _body_to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def _from_body(cls: Type[R], metadata: ResourceMetadata, data: Dict[str, Any]) -> R:
        raise NotImplementedError


def _require_str(data: Dict[str, Any], key: str) -> str:
    """Read an optional string field, rejecting any other JSON type."""
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _require_bool(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean, got {type(value).__name__}")
    return value

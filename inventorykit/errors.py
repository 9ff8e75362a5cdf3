"""
Exceptions raised by snapshot reconciliation.

Failures fall into four groups:
- Envelope errors (InvalidResourceType): the delivered resource is not a
  DiscoverySnapshot. Nothing is written.
- Payload errors (PayloadDecodeError): rawData does not parse. Recorded on
  the snapshot as phase=Error, then raised.
- Per-device errors: absorbed by the resolvers and only logged.
- Persistence errors (StatusPersistError, IndexLoadError): raised so the
  caller's retry policy can take over.
"""


class ReconcileError(Exception):
    """Base class for reconciliation failures."""


class InvalidResourceType(ReconcileError):
    """The delivered resource is not a decodable DiscoverySnapshot."""


class PayloadDecodeError(ReconcileError):
    """The snapshot's rawData is not a JSON array of device descriptors."""


class StatusPersistError(ReconcileError):
    """Writing the snapshot status failed."""


class IndexLoadError(ReconcileError):
    """Listing existing devices to build the serial-number index failed."""


class ReconcileCancelled(ReconcileError):
    """Cancellation was requested while a reconcile was in flight."""

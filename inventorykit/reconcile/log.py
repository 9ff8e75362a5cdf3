"""Logging helpers tagging reconcile log lines with the snapshot name."""

import logging
from typing import Any, MutableMapping, Tuple


class SnapshotLogAdapter(logging.LoggerAdapter):
    """
    Prefixes every message with ``snapshot=<name>`` and attaches the name as
    ``record.snapshot`` for structured handlers.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return f"snapshot={extra.get('snapshot')} {msg}", kwargs


def snapshot_logger(logger: logging.Logger, snapshot_name: str) -> SnapshotLogAdapter:
    return SnapshotLogAdapter(logger, {"snapshot": snapshot_name})

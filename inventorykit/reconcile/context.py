"""Per-invocation reconcile context: cancellation and clock."""

import threading
from datetime import datetime
from typing import Callable, Optional

from ..errors import ReconcileCancelled
from ..resources.base import utcnow


class ReconcileContext:
    """
    Carries the cancellation signal and clock for one reconcile call.

    check() must be called before every store call. A cancelled reconcile
    leaves the snapshot in whatever phase was last persisted (normally
    Processing), which a later retry re-runs from the beginning.
    """

    def __init__(
        self,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.cancel_event = cancel_event
        self._clock = clock

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def check(self, operation: str = "") -> None:
        """Raise ReconcileCancelled if cancellation has been requested."""
        if self.cancelled:
            suffix = f" before {operation}" if operation else ""
            raise ReconcileCancelled(f"reconcile cancelled{suffix}")

    def now(self) -> datetime:
        return self._clock()

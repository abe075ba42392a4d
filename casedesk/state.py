"""In-memory tracking of the multi-step hard deletion of evidence."""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Callable, Optional


class DeleteStatus(str, Enum):
    INITIATED = "initiated"
    CONFIRMED = "confirmed"
    DELETING = "deleting"
    DONE = "done"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


class DeletionTracker:
    """Thread-safe map of evidence id to deletion status, each entry expiring."""

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[int, tuple[DeleteStatus, float]] = {}

    def set_status(self, evidence_id: int, status: DeleteStatus) -> None:
        """Record a status and restart its expiry window."""
        with self._lock:
            self._entries[evidence_id] = (DeleteStatus(status), self._clock() + self._ttl)

    def get_status(self, evidence_id: int) -> Optional[DeleteStatus]:
        """Return the current status, or None if unknown or expired."""
        with self._lock:
            entry = self._entries.get(evidence_id)
            if entry is None:
                return None
            status, expiry = entry
            if self._clock() > expiry:
                return None
            return status

    def clear_status(self, evidence_id: int) -> None:
        with self._lock:
            self._entries.pop(evidence_id, None)
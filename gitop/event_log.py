"""Bounded, insertion-ordered log of notifications shown in the console pane."""

import logging
import threading
from typing import Iterable, List

from .models import EventRecord

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class EventLog:
    """Append-only event sequence; the oldest records are evicted past capacity."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Event log capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._records: List[EventRecord] = []
        self._lock = threading.Lock()

    def append(self, record: EventRecord):
        self.extend([record])

    def extend(self, records: Iterable[EventRecord]):
        records = list(records)
        if not records:
            return
        with self._lock:
            self._records.extend(records)
            overflow = len(self._records) - self.capacity
            if overflow > 0:
                del self._records[:overflow]
        for record in records:
            logger.info(f"{record.repo}: {record.source} - {record.message}")

    def recent(self, count: int) -> List[EventRecord]:
        """Return the latest ``count`` records, newest first."""
        if count <= 0:
            return []
        with self._lock:
            return list(reversed(self._records[-count:]))

    def snapshot(self) -> List[EventRecord]:
        """Return every retained record in insertion order."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

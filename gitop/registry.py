"""Repository registry: the status table shared by the poller and the UI."""

import copy
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, List, Tuple

from .models import RepositoryDescriptor, RepositoryStatus


class RepositoryRegistry:
    """Tracked repositories and their last-known status, in configured order.

    The descriptor set is fixed at construction. All reads and writes of the
    status list go through ``locked()`` (one exclusive, non-re-entrant section)
    or ``snapshot()``.
    """

    def __init__(
        self,
        descriptors: Iterable[RepositoryDescriptor],
        clock: Callable[[], float] = time.monotonic,
    ):
        self._descriptors: Tuple[RepositoryDescriptor, ...] = tuple(descriptors)
        now = clock()
        self._statuses: List[RepositoryStatus] = [
            RepositoryStatus(descriptor=descriptor, last_update=now)
            for descriptor in self._descriptors
        ]
        self._lock = threading.Lock()

    @contextmanager
    def locked(self) -> Iterator[List[RepositoryStatus]]:
        """Hold the registry lock and expose the live status list."""
        with self._lock:
            yield self._statuses

    def snapshot(self) -> List[RepositoryStatus]:
        """Deep copy of every status, taken under the lock."""
        with self._lock:
            return copy.deepcopy(self._statuses)

    def descriptors(self) -> Tuple[RepositoryDescriptor, ...]:
        return self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

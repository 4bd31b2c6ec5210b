"""Background poller: refreshes repository status and derives notifications."""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .event_log import EventLog
from .flash import start_flash
from .git_client import GitClient
from .models import EventRecord, FlashColor
from .registry import RepositoryRegistry

logger = logging.getLogger(__name__)

MONITOR_SOURCE = "Git Monitor"
APP_SOURCE = "GitOp"
SYSTEM_SOURCE = "System"

# Upper bound on commit notifications per repository per tick
MAX_COMMIT_EVENTS = 5


@dataclass
class StatusChange:
    """Outcome of comparing two consecutive (ahead, behind) readings."""
    events: List[EventRecord] = field(default_factory=list)
    flash_color: Optional[FlashColor] = None
    ahead_delta: int = 0


def synthesize_events(
    repo_name: str,
    prev_ahead: int,
    prev_behind: int,
    ahead: int,
    behind: int,
) -> StatusChange:
    """
    Derive notifications and the row highlight from a count delta.

    The first three rules are exclusive (first match wins); the caught-up
    rule is evaluated independently.

    Args:
        repo_name: Repository display name for the records
        prev_ahead, prev_behind: Counts from the previous successful poll
        ahead, behind: Counts from this poll

    Returns:
        StatusChange with the events in emission order, the flash color to
        enter (or None) and the positive ahead delta
    """
    change = StatusChange()
    ahead_grew = ahead > prev_ahead
    behind_grew = behind > prev_behind

    if behind_grew and ahead_grew:
        change.events.append(EventRecord.now(
            repo_name,
            MONITOR_SOURCE,
            f"Status changed: {ahead} ahead (+{ahead - prev_ahead}), "
            f"{behind} behind (+{behind - prev_behind})",
        ))
    elif behind_grew:
        change.events.append(EventRecord.now(
            repo_name,
            MONITOR_SOURCE,
            f"New commits available: {behind} behind (+{behind - prev_behind})",
        ))
    elif ahead_grew:
        change.events.append(EventRecord.now(
            repo_name,
            MONITOR_SOURCE,
            f"Local commits added: {ahead} ahead (+{ahead - prev_ahead})",
        ))

    caught_up = (prev_ahead > 0 or prev_behind > 0) and ahead == 0 and behind == 0
    if caught_up:
        change.events.append(EventRecord.now(repo_name, APP_SOURCE, "Repository is now up to date!"))

    # Red wins over green; both cannot hold at once since behind > 0 after growth.
    if behind_grew:
        change.flash_color = FlashColor.ALERT
    elif caught_up:
        change.flash_color = FlashColor.SYNCED

    if ahead_grew:
        change.ahead_delta = ahead - prev_ahead
    return change


class Poller:
    """Polls every tracked repository once per interval on a daemon thread."""

    def __init__(
        self,
        registry: RepositoryRegistry,
        event_log: EventLog,
        git_client: GitClient,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            registry: Shared status table
            event_log: Shared notification log
            git_client: VCS collaborator
            interval: Seconds between ticks
            clock: Monotonic time source for liveness stamps and flashes
        """
        self.registry = registry
        self.event_log = event_log
        self.git_client = git_client
        self.interval = interval
        self.clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Start polling in a background thread; the first tick runs immediately."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="gitop-poller", daemon=True)
        self._thread.start()
        logger.info(f"Poller started for {len(self.registry)} repositories (every {self.interval:g}s)")

    def stop(self, timeout: float = 5.0):
        """Signal cancellation and wait for the current tick to finish."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"Poller did not stop within {timeout}s")
            self._thread = None
        logger.info("Poller stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Poll tick failed; retrying next interval")
            if self._stop_event.wait(self.interval):
                break

    def _query_statuses(self) -> List[Tuple[Optional[Tuple[int, int, str]], Optional[Exception]]]:
        results = []
        for descriptor in self.registry.descriptors():
            if self._stop_event.is_set():
                break
            try:
                results.append((self.git_client.status(descriptor.path, descriptor.remote), None))
            except Exception as e:
                logger.warning(f"Status query failed for {descriptor.name} ({descriptor.path}): {e}")
                results.append((None, e))
        return results

    def poll_once(self) -> List[EventRecord]:
        """
        Run one tick over every repository in configured order.

        Git is queried outside the registry lock; all results are then applied
        in a single critical section. A failure for one repository retains its
        previous status and produces one diagnostic record without affecting
        the others.

        Returns:
            Records appended to the event log during this tick, in order
        """
        results = self._query_statuses()
        per_repo: List[List[EventRecord]] = []
        commit_requests: Dict[int, int] = {}

        with self.registry.locked() as statuses:
            now = self.clock()
            for index, (result, error) in enumerate(results):
                status = statuses[index]
                status.last_update = now

                if error is not None:
                    per_repo.append([EventRecord.now(
                        status.name,
                        SYSTEM_SOURCE,
                        f"Git error: {error} (path: {status.path})",
                    )])
                    continue

                ahead, behind, branch = result
                change = synthesize_events(status.name, status.ahead, status.behind, ahead, behind)
                status.ahead = ahead
                status.behind = behind
                status.branch = branch
                if change.flash_color is not None:
                    status.flash = start_flash(change.flash_color, now)
                if change.ahead_delta > 0:
                    commit_requests[index] = min(change.ahead_delta, MAX_COMMIT_EVENTS)
                per_repo.append(change.events)

        descriptors = self.registry.descriptors()
        for index, count in commit_requests.items():
            descriptor = descriptors[index]
            try:
                commits = self.git_client.recent_commits(descriptor.path, count)
            except Exception as e:
                logger.warning(f"History read failed for {descriptor.name} ({descriptor.path}): {e}")
                continue
            for commit in commits:
                per_repo[index].append(EventRecord.now(descriptor.name, commit.author, commit.message))

        appended = [record for records in per_repo for record in records]
        self.event_log.extend(appended)
        return appended

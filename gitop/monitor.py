"""Application wiring - builds the shared state and its collaborators."""

import logging
from typing import Optional

from .config import MonitorConfig
from .event_log import EventLog
from .git_client import GitClient, has_git_metadata, path_exists
from .input_handler import InputHandler
from .models import EventRecord, SYSTEM_REPO
from .poller import APP_SOURCE, SYSTEM_SOURCE, Poller
from .registry import RepositoryRegistry
from .view_state import ViewState

logger = logging.getLogger(__name__)


class MonitorApp:
    """Owns the registry and event log and hands explicit references to each component."""

    def __init__(self, config: MonitorConfig, git_client: Optional[GitClient] = None):
        self.config = config
        self.git_client = git_client or GitClient(timeout=config.git_timeout)
        self.registry = RepositoryRegistry(config.descriptors())
        self.event_log = EventLog()
        self.poller = Poller(
            registry=self.registry,
            event_log=self.event_log,
            git_client=self.git_client,
            interval=config.refresh_interval,
        )
        self.view_state = ViewState(self.registry, self.git_client, config.max_commits)
        self.input_handler = InputHandler(self.view_state)

    def validate_repositories(self):
        """Record startup warnings for paths that are missing or not git checkouts."""
        records = [EventRecord.now(
            SYSTEM_REPO,
            APP_SOURCE,
            f"Started monitoring {len(self.registry)} repositories",
        )]
        for descriptor in self.registry.descriptors():
            if not path_exists(descriptor.path):
                records.append(EventRecord.now(
                    descriptor.name,
                    SYSTEM_SOURCE,
                    f"Warning: Path does not exist: {descriptor.path}",
                ))
            elif not has_git_metadata(descriptor.path):
                records.append(EventRecord.now(
                    descriptor.name,
                    SYSTEM_SOURCE,
                    f"Warning: Not a git repository: {descriptor.path}",
                ))
        self.event_log.extend(records)
        if len(records) > 1:
            logger.warning(f"{len(records) - 1} repositories failed startup validation")

    def start(self):
        self.poller.start()

    def stop(self):
        self.poller.stop()

    @property
    def should_quit(self) -> bool:
        return self.input_handler.should_quit

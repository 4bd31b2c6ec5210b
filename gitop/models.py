"""Data models for gitop."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

DEFAULT_REMOTE = "origin"
SYSTEM_REPO = "System"
UNKNOWN_BRANCH = "unknown"


class FlashColor(Enum):
    """Color class of a row highlight."""
    ALERT = "alert"    # Behind count grew (red by default)
    SYNCED = "synced"  # Caught up with the remote (green by default)


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Identity of a tracked repository, fixed for the process lifetime."""
    name: str
    path: Path
    remote: str = DEFAULT_REMOTE


@dataclass
class CommitSummary:
    """One entry of a repository's recent history."""
    hash: str
    author: str
    message: str
    timestamp: datetime
    branch: str = UNKNOWN_BRANCH


@dataclass(frozen=True)
class Flash:
    """Time-bounded row emphasis. Expiry is read, never awaited."""
    color: FlashColor
    expires_at: float
    duration: float

    @classmethod
    def start(cls, color: FlashColor, duration: float, now: float) -> "Flash":
        return cls(color=color, expires_at=now + duration, duration=duration)

    def is_active(self, now: float) -> bool:
        return now < self.expires_at

    def remaining_fraction(self, now: float) -> float:
        if self.duration <= 0:
            return 0.0
        return (self.expires_at - now) / self.duration


@dataclass
class RepositoryStatus:
    """Last-known state of one repository, owned by the registry."""
    descriptor: RepositoryDescriptor
    ahead: int = 0
    behind: int = 0
    branch: str = UNKNOWN_BRANCH
    last_update: float = field(default_factory=time.monotonic)
    flash: Optional[Flash] = None
    expanded: bool = False
    recent_commits: List[CommitSummary] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def path(self) -> Path:
        return self.descriptor.path

    @property
    def remote(self) -> str:
        return self.descriptor.remote

    @property
    def row_span(self) -> int:
        """Rows this repository occupies in the flattened table."""
        if self.expanded:
            return 1 + len(self.recent_commits)
        return 1


@dataclass(frozen=True)
class EventRecord:
    """A single human-readable notification in the event log."""
    timestamp: datetime
    repo: str
    source: str
    message: str

    @classmethod
    def now(cls, repo: str, source: str, message: str) -> "EventRecord":
        return cls(
            timestamp=datetime.now(timezone.utc),
            repo=repo,
            source=source,
            message=message,
        )

    def format(self) -> str:
        local = self.timestamp.astimezone()
        return f"[{local.strftime('%H:%M:%S')}] {self.repo}: {self.source} - {self.message}"

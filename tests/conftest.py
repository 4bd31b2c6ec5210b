"""Shared pytest fixtures for gitop tests."""

from pathlib import Path
from typing import List
from unittest.mock import MagicMock

import pytest

from gitop.event_log import EventLog
from gitop.git_client import GitClient
from gitop.models import RepositoryDescriptor
from gitop.registry import RepositoryRegistry


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def descriptors() -> List[RepositoryDescriptor]:
    return [
        RepositoryDescriptor(name="alpha", path=Path("/tmp/gitop-test/alpha")),
        RepositoryDescriptor(name="beta", path=Path("/tmp/gitop-test/beta"), remote="upstream"),
        RepositoryDescriptor(name="gamma", path=Path("/tmp/gitop-test/gamma")),
    ]


@pytest.fixture
def registry(descriptors, clock) -> RepositoryRegistry:
    return RepositoryRegistry(descriptors, clock=clock)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def mock_git() -> MagicMock:
    """
    Mock GitClient for testing without real repositories.

    Returns:
        MagicMock whose status() reports a synced 'main' branch and whose
        recent_commits() returns no history
    """
    mock = MagicMock(spec=GitClient)
    mock.status.return_value = (0, 0, "main")
    mock.recent_commits.return_value = []
    return mock

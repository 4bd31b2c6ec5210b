"""Selection over the flattened repository table.

Each repository occupies one row, followed by one row per cached commit when
expanded. Navigation moves between repositories; commit rows are skipped as a
unit. The index mapping is computed from row spans alone, so it is a pure
function of the current list shape.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .git_client import GitClient
from .models import RepositoryStatus
from .registry import RepositoryRegistry

logger = logging.getLogger(__name__)


def row_spans(statuses: Sequence[RepositoryStatus]) -> List[int]:
    return [status.row_span for status in statuses]


def total_rows(spans: Sequence[int]) -> int:
    return sum(spans)


def flatten(spans: Sequence[int], repo_index: int) -> Optional[int]:
    """Flat row of a repository's own row, or None for an empty list."""
    if not spans:
        return None
    repo_index = max(0, min(repo_index, len(spans) - 1))
    return sum(spans[:repo_index])


def resolve(spans: Sequence[int], flat_row: int) -> Optional[Tuple[int, Optional[int]]]:
    """Map a flat row to (repo_index, commit_offset); offset is None on a repo row.

    Rows past the end clamp to the last repository.
    """
    if not spans:
        return None
    start = 0
    for repo_index, span in enumerate(spans):
        if flat_row < start + span:
            offset = flat_row - start
            return repo_index, (offset - 1 if offset > 0 else None)
        start += span
    return len(spans) - 1, None


def unflatten(spans: Sequence[int], flat_row: int) -> Optional[int]:
    """Repository whose span contains ``flat_row``, or None for an empty list."""
    resolved = resolve(spans, flat_row)
    if resolved is None:
        return None
    return resolved[0]


class ViewState:
    """Selection cursor over the repository table.

    The cursor is kept as a repository index; the flat row is derived from the
    current row spans on every read, so expanding or collapsing any repository
    never moves the selection to a different repository.
    """

    def __init__(self, registry: RepositoryRegistry, git_client: GitClient, max_commits: int):
        self.registry = registry
        self.git_client = git_client
        self.max_commits = max_commits
        self._repo_index: Optional[int] = 0 if len(registry) else None

    @property
    def selected(self) -> Optional[int]:
        """Flat row of the selection, or None when nothing is tracked."""
        if self._repo_index is None:
            return None
        with self.registry.locked() as statuses:
            return flatten(row_spans(statuses), self._repo_index)

    def selected_repo_index(self) -> Optional[int]:
        return self._repo_index

    def _move(self, step: int):
        with self.registry.locked() as statuses:
            spans = row_spans(statuses)
            if self._repo_index is None or not spans:
                return
            current = unflatten(spans, flatten(spans, self._repo_index))
            self._repo_index = (current + step) % len(spans)

    def next(self):
        """Select the following repository, wrapping to the first."""
        self._move(1)

    def previous(self):
        """Select the preceding repository, wrapping to the last."""
        self._move(-1)

    def toggle_expand(self):
        """Expand or collapse the selected repository.

        Expanding refetches the commit list. History is read outside the
        registry lock so a slow git call never blocks the poller.
        """
        repo_index = self._repo_index
        if repo_index is None:
            return

        with self.registry.locked() as statuses:
            status = statuses[repo_index]
            if status.expanded:
                status.expanded = False
                return
            path = status.path

        commits = self.git_client.recent_commits(path, self.max_commits)
        logger.debug(f"Expanded {path} with {len(commits)} commits")

        with self.registry.locked() as statuses:
            status = statuses[repo_index]
            status.expanded = True
            status.recent_commits = commits

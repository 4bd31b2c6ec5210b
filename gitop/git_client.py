"""Read-only git transport used by the poller and the commit drill-down.

All calls are synchronous ``subprocess.run`` invocations of the ``git``
binary with a per-call timeout, so a hung remote can stall at most one
repository for ``timeout`` seconds.
"""

import logging
import os
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple

from .models import CommitSummary, UNKNOWN_BRANCH

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 30.0
SHORT_HASH_LENGTH = 8

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%H%x1f%an%x1f%ct%x1f%B%x1e"


class GitError(RuntimeError):
    """A git invocation failed, timed out, or git is not installed."""


def path_exists(path: Path) -> bool:
    return Path(path).exists()


def has_git_metadata(path: Path) -> bool:
    """True if the path holds a .git directory (or a worktree's .git file)."""
    return (Path(path) / ".git").exists()


class GitClient:
    """Queries branch, ahead/behind counts and recent history of a checkout."""

    def __init__(self, timeout: float = DEFAULT_GIT_TIMEOUT):
        self.timeout = timeout
        self._env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

    def _run(self, args: List[str], cwd: Path) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                env=self._env,
            )
        except subprocess.TimeoutExpired:
            raise GitError(f"git {args[0]} timed out after {self.timeout:g}s")
        except OSError as e:
            raise GitError(f"git {args[0]} could not run: {e}")

        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise GitError(f"git {args[0]} failed: {detail}")
        return result.stdout

    def _ref_exists(self, path: Path, ref: str) -> bool:
        try:
            self._run(["show-ref", "--verify", "--quiet", ref], path)
        except GitError:
            return False
        return True

    def current_branch(self, path: Path) -> str:
        return self._run(["rev-parse", "--abbrev-ref", "HEAD"], path).strip()

    def fetch(self, path: Path, remote: str) -> bool:
        """Refresh remote-tracking refs. Failures are expected offline and ignored."""
        try:
            self._run(["fetch", "--quiet", remote], path)
        except GitError as e:
            logger.debug(f"Fetch of {remote} in {path} skipped: {e}")
            return False
        return True

    def status(self, path: Path, remote: str) -> Tuple[int, int, str]:
        """
        Compare the current branch with its counterpart on ``remote``.

        Args:
            path: Repository working tree
            remote: Remote name, e.g. "origin"

        Returns:
            (ahead, behind, branch). Both counts are 0 when the remote has no
            branch of the same name or HEAD is detached.

        Raises:
            GitError: If the path is not a readable repository or git fails
        """
        path = Path(path)
        if not path.is_dir():
            raise GitError(f"not a directory: {path}")

        branch = self.current_branch(path)
        self.fetch(path, remote)

        if branch == "HEAD":
            return 0, 0, branch

        remote_ref = f"refs/remotes/{remote}/{branch}"
        if not self._ref_exists(path, remote_ref):
            return 0, 0, branch

        output = self._run(
            ["rev-list", "--left-right", "--count", f"HEAD...{remote_ref}"],
            path,
        )
        try:
            ahead_text, behind_text = output.split()
            return int(ahead_text), int(behind_text), branch
        except ValueError:
            raise GitError(f"unexpected rev-list output: {output.strip()!r}")

    def recent_commits(self, path: Path, count: int) -> List[CommitSummary]:
        """Return up to ``count`` commits reachable from HEAD, newest first.

        History is display-only, so any failure yields an empty list.
        """
        if count <= 0:
            return []
        path = Path(path)
        try:
            branch = self.current_branch(path)
            output = self._run(["log", f"--max-count={count}", f"--format={_LOG_FORMAT}"], path)
        except GitError as e:
            logger.debug(f"Could not read history of {path}: {e}")
            return []

        commits: List[CommitSummary] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            try:
                full_hash, author, epoch, body = record.split(_FIELD_SEP, 3)
                timestamp = datetime.fromtimestamp(int(epoch), tz=timezone.utc)
            except ValueError:
                logger.debug(f"Skipping unparsable log record in {path}: {record!r}")
                continue
            lines = body.strip().splitlines()
            commits.append(
                CommitSummary(
                    hash=full_hash[:SHORT_HASH_LENGTH],
                    author=author or "Unknown",
                    message=lines[0] if lines else "",
                    timestamp=timestamp,
                    branch=branch or UNKNOWN_BRANCH,
                )
            )
        return commits

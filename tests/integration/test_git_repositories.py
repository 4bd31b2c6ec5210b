"""Integration tests against real git repositories created in tmp_path."""

import shutil
import subprocess
from pathlib import Path

import pytest

from gitop.event_log import EventLog
from gitop.git_client import GitClient, GitError
from gitop.models import RepositoryDescriptor
from gitop.poller import Poller
from gitop.registry import RepositoryRegistry

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=Test Author",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def _commit(repo: Path, message: str):
    _git(repo, "commit", "--allow-empty", "-m", message)


@pytest.fixture
def checkouts(tmp_path):
    """A bare 'origin' plus two clones sharing one 'main' branch."""
    origin = tmp_path / "origin.git"
    _git(tmp_path, "init", "--bare", str(origin))
    _git(origin, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = tmp_path / "seed"
    _git(tmp_path, "init", str(seed))
    _git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    _commit(seed, "initial commit")
    _git(seed, "remote", "add", "origin", str(origin))
    _git(seed, "push", "origin", "main")

    local = tmp_path / "local"
    _git(tmp_path, "clone", str(origin), str(local))
    other = tmp_path / "other"
    _git(tmp_path, "clone", str(origin), str(other))
    return local, other


def test_in_sync_clone_reports_zero(checkouts):
    local, _ = checkouts

    assert GitClient().status(local, "origin") == (0, 0, "main")


def test_ahead_and_behind_counts(checkouts):
    local, other = checkouts
    _commit(other, "remote work 1")
    _commit(other, "remote work 2")
    _git(other, "push", "origin", "main")
    _commit(local, "local work")

    assert GitClient().status(local, "origin") == (1, 2, "main")


def test_recent_commits_newest_first(checkouts):
    local, _ = checkouts
    _commit(local, "second\n\nwith a body")

    commits = GitClient().recent_commits(local, 5)

    assert [c.message for c in commits] == ["second", "initial commit"]
    assert commits[0].author == "Test Author"
    assert len(commits[0].hash) == 8
    assert commits[0].branch == "main"


def test_plain_directory_is_an_error(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()

    with pytest.raises(GitError):
        GitClient().status(plain, "origin")
    assert GitClient().recent_commits(plain, 3) == []


def test_poll_tick_reports_new_remote_commits(checkouts, tmp_path):
    local, other = checkouts
    registry = RepositoryRegistry([
        RepositoryDescriptor(name="local", path=local),
        RepositoryDescriptor(name="broken", path=tmp_path / "missing"),
    ])
    log = EventLog()
    poller = Poller(registry, log, GitClient(timeout=30), interval=60)

    assert [e.repo for e in poller.poll_once()] == ["broken"]

    _commit(other, "remote work")
    _git(other, "push", "origin", "main")
    appended = poller.poll_once()

    assert [(e.repo, e.message) for e in appended if e.repo == "local"] == [
        ("local", "New commits available: 1 behind (+1)"),
    ]
    assert registry.snapshot()[0].behind == 1


def _commit_with_raw_bytes(repo: Path):
    """Point HEAD at a commit whose author and message are not valid UTF-8."""
    tree = _git(repo, "rev-parse", "HEAD^{tree}").strip()
    parent = _git(repo, "rev-parse", "HEAD").strip()
    body = (
        f"tree {tree}\nparent {parent}\n".encode()
        + b"author A\xff <a@example.com> 1700000000 +0000\n"
        + b"committer A\xff <a@example.com> 1700000000 +0000\n\n"
        + b"msg \xff\xfe\n"
    )
    sha = subprocess.run(
        ["git", "hash-object", "--literally", "-t", "commit", "-w", "--stdin"],
        cwd=repo,
        input=body,
        capture_output=True,
        check=True,
    ).stdout.decode().strip()
    _git(repo, "update-ref", "HEAD", sha)


def test_undecodable_history_is_still_readable(checkouts):
    local, _ = checkouts
    _commit_with_raw_bytes(local)

    commits = GitClient().recent_commits(local, 5)

    assert commits[0].author == "A\ufffd"
    assert commits[0].message.startswith("msg ")
    assert commits[1].message == "initial commit"


def test_poll_tick_with_undecodable_history_logs_events(checkouts):
    local, _ = checkouts
    registry = RepositoryRegistry([RepositoryDescriptor(name="local", path=local)])
    log = EventLog()
    poller = Poller(registry, log, GitClient(timeout=30), interval=60)
    poller.poll_once()

    _commit_with_raw_bytes(local)
    appended = poller.poll_once()

    assert appended[0].message == "Local commits added: 1 ahead (+1)"
    assert appended[1].source == "A\ufffd"
    assert len(log) == 2

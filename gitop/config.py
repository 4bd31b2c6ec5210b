"""Configuration loading for gitop (YAML)."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .git_client import DEFAULT_GIT_TIMEOUT
from .models import DEFAULT_REMOTE, RepositoryDescriptor

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "gitop.yaml"
DEFAULT_REFRESH_INTERVAL = 5.0
DEFAULT_MAX_COMMITS = 5
DEFAULT_LOG_FILE = "~/.local/state/gitop/gitop.log"


class ConfigError(ValueError):
    """The configuration file is unreadable or does not match the schema."""


@dataclass
class ColorConfig:
    ahead_color: str = "yellow"
    behind_color: str = "cyan"
    flash_alert_color: str = "red"
    flash_synced_color: str = "green"


@dataclass
class RepoConfig:
    name: str
    path: str
    remote: str = DEFAULT_REMOTE

    def descriptor(self) -> RepositoryDescriptor:
        return RepositoryDescriptor(name=self.name, path=expand_path(self.path), remote=self.remote)


@dataclass
class MonitorConfig:
    repositories: List[RepoConfig] = field(default_factory=list)
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    max_commits: int = DEFAULT_MAX_COMMITS
    colors: ColorConfig = field(default_factory=ColorConfig)
    log_file: str = DEFAULT_LOG_FILE
    git_timeout: float = DEFAULT_GIT_TIMEOUT

    def descriptors(self) -> List[RepositoryDescriptor]:
        return [repo.descriptor() for repo in self.repositories]

    def to_dict(self) -> dict:
        return {
            "repositories": [
                {"name": repo.name, "path": repo.path, "remote": repo.remote}
                for repo in self.repositories
            ],
            "refresh_interval": self.refresh_interval,
            "max_commits": self.max_commits,
            "colors": {
                "ahead_color": self.colors.ahead_color,
                "behind_color": self.colors.behind_color,
                "flash_alert_color": self.colors.flash_alert_color,
                "flash_synced_color": self.colors.flash_synced_color,
            },
            "log_file": self.log_file,
            "git_timeout": self.git_timeout,
        }


def default_config() -> MonitorConfig:
    """Config used when no file exists: watch the current directory."""
    return MonitorConfig(repositories=[RepoConfig(name="Current Directory", path=".")])


def expand_path(path: str) -> Path:
    return Path(os.path.expanduser(path))


def get_config_path(custom_path: Optional[str] = None) -> Path:
    """
    Resolve which config file to use.

    An explicit path wins. Otherwise the user config
    ($XDG_CONFIG_HOME/gitop/gitop.yaml) is preferred, falling back to
    ./gitop.yaml only when the user file is missing and the local one exists.
    """
    if custom_path:
        return expand_path(custom_path)

    local_config = Path(CONFIG_FILE_NAME)
    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    user_config = Path(config_home) / "gitop" / CONFIG_FILE_NAME

    if user_config.exists() or not local_config.exists():
        return user_config
    return local_config


def _number(data: dict, key: str, default, cast, minimum, inclusive: bool):
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    try:
        value = cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    if value < minimum or (not inclusive and value == minimum):
        bound = ">=" if inclusive else ">"
        raise ConfigError(f"'{key}' must be {bound} {minimum}, got {value}")
    return value


def _parse_repositories(raw) -> List[RepoConfig]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("'repositories' must be a list")

    repos = []
    for position, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            raise ConfigError(f"repository #{position} must be a mapping")
        name = entry.get("name")
        path = entry.get("path")
        if not name or not path:
            raise ConfigError(f"repository #{position} needs both 'name' and 'path'")
        remote = entry.get("remote") or DEFAULT_REMOTE
        repos.append(RepoConfig(name=str(name), path=str(path), remote=str(remote)))
    return repos


def _parse_colors(raw) -> ColorConfig:
    colors = ColorConfig()
    if raw is None:
        return colors
    if not isinstance(raw, dict):
        raise ConfigError("'colors' must be a mapping")
    for key in ("ahead_color", "behind_color", "flash_alert_color", "flash_synced_color"):
        if raw.get(key):
            setattr(colors, key, str(raw[key]))
    return colors


def parse_config(data: dict) -> MonitorConfig:
    """Validate a decoded YAML document and fill in defaults."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    return MonitorConfig(
        repositories=_parse_repositories(data.get("repositories")),
        refresh_interval=_number(data, "refresh_interval", DEFAULT_REFRESH_INTERVAL, float, 0, inclusive=False),
        max_commits=_number(data, "max_commits", DEFAULT_MAX_COMMITS, int, 0, inclusive=True),
        colors=_parse_colors(data.get("colors")),
        log_file=str(data.get("log_file") or DEFAULT_LOG_FILE),
        git_timeout=_number(data, "git_timeout", DEFAULT_GIT_TIMEOUT, float, 0, inclusive=False),
    )


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """
    Load configuration from YAML.

    Args:
        config_path: Explicit file, or None to search the default locations

    Returns:
        Parsed config, or the built-in default when no file exists

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = get_config_path(config_path)

    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return default_config()

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}")

    config = parse_config(data)
    logger.info(f"Loaded config from {path} ({len(config.repositories)} repositories)")
    return config


def create_default_config(config_path: Path) -> Path:
    """Write the default configuration to ``config_path``, creating parent dirs."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(default_config().to_dict(), f, sort_keys=False)
    return config_path

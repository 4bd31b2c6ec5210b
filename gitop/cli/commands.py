"""Command implementations for the gitop CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional

from ..config import ConfigError, MonitorConfig, create_default_config, get_config_path, load_config
from ..monitor import MonitorApp

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_file: str, verbose: bool = False):
    """Send logs to a file; stderr belongs to the curses screen while it runs."""
    path = Path(log_file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Warning: cannot create log directory {path.parent}: {e}", file=sys.stderr)
        logging.basicConfig(handlers=[logging.NullHandler()])
        return
    logging.basicConfig(
        filename=str(path),
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def cmd_init(config_path: Optional[str], force: bool = False) -> int:
    """
    Write a default config file.

    Exit codes:
        0: Config written
        1: Config exists (without --force) or could not be written
    """
    path = get_config_path(config_path)
    if path.exists() and not force:
        print(f"Config file already exists at: {path}", file=sys.stderr)
        print("Use --force to overwrite", file=sys.stderr)
        return 1

    try:
        create_default_config(path)
    except OSError as e:
        print(f"Error: could not write {path}: {e}", file=sys.stderr)
        return 1

    print(f"Created default config at: {path}")
    print("\nTo start monitoring, run: gitop")
    print(f"To edit config: {path}")
    return 0


def cmd_config(config_path: Optional[str]) -> int:
    """Show where the config lives and what it monitors."""
    path = get_config_path(config_path)
    print(f"Config file location: {path}")
    print(f"Exists: {path.exists()}")

    if not path.exists():
        print("No config file found. Run 'gitop init' to create one.")
        return 0

    try:
        config = load_config(str(path))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Repositories configured: {len(config.repositories)}")
    for repo in config.repositories:
        print(f"  - {repo.name} ({repo.path})")
    return 0


def run_monitor(config: MonitorConfig) -> int:
    """Start the poller and hold the terminal until the operator quits."""
    from .tui import run_monitor_tui

    app = MonitorApp(config)
    app.validate_repositories()
    app.start()
    try:
        return run_monitor_tui(app)
    finally:
        app.stop()


def cmd_monitor(config_path: Optional[str], verbose: bool = False) -> int:
    """
    Run the interactive monitor.

    Exit codes:
        0: Operator quit
        1: Configuration rejected; the monitor did not start
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_file, verbose=verbose)
    logger.info(f"Starting gitop with {len(config.repositories)} repositories")
    try:
        return run_monitor(config)
    except Exception:
        logger.exception("Interactive loop failed")
        raise

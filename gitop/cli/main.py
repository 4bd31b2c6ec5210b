"""Main entry point for the gitop CLI."""

import argparse
import sys

from . import commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitop",
        description="A terminal-based git repository monitor",
    )
    parser.add_argument("-c", "--config", help="Path to config file (default: ~/.config/gitop/gitop.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to the log file")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # gitop init [--force]
    init_parser = subparsers.add_parser("init", help="Initialize a new gitop config file")
    init_parser.add_argument("-f", "--force", action="store_true", help="Force overwrite existing config")

    # gitop config
    subparsers.add_parser("config", help="Show the current config file path")

    return parser


def main():
    """Main entry point for gitop CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "init":
        sys.exit(commands.cmd_init(args.config, force=args.force))
    elif args.command == "config":
        sys.exit(commands.cmd_config(args.config))
    else:
        sys.exit(commands.cmd_monitor(args.config, verbose=args.verbose))


if __name__ == "__main__":
    main()

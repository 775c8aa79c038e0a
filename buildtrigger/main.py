"""Main CLI entry point for buildtrigger.

Provides commands: index, edges, snapshot, trigger
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from buildtrigger.cli.commands import (
    edges_command,
    index_command,
    snapshot_command,
    trigger_command,
)

logger = logging.getLogger("buildtrigger.cli")


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=[handler],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildtrigger",
        description="Buildtrigger - dependency-driven downstream build triggering",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_workspace(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "workspace",
            help="Workspace description (TOML/JSON file) listing the projects",
        )
        sub.add_argument(
            "--cache-dir",
            help=(
                "Directory for persisted snapshots. Overrides settings.cache_dir "
                "from the workspace description."
            ),
        )

    index_parser = subparsers.add_parser(
        "index",
        help="Show which projects publish each artifact",
    )
    add_workspace(index_parser)

    edges_parser = subparsers.add_parser(
        "edges",
        help="Show build-order edges (producer -> consumer)",
    )
    add_workspace(edges_parser)
    edges_parser.add_argument(
        "--fail-on-cycle",
        action="store_true",
        help="Exit with non-zero status when the project graph contains cycles",
    )

    snapshot_parser = subparsers.add_parser(
        "snapshot",
        help="Print a project's dependency snapshot as JSON",
    )
    add_workspace(snapshot_parser)
    snapshot_parser.add_argument("project", help="Project name")

    trigger_parser = subparsers.add_parser(
        "trigger",
        help="Treat a project's build as completed and list downstream builds to trigger",
    )
    add_workspace(trigger_parser)
    trigger_parser.add_argument("project", help="Project whose build just completed")
    trigger_parser.add_argument(
        "-r",
        "--result",
        default="SUCCESS",
        help="Result of the completed build (default: SUCCESS)",
    )
    trigger_parser.add_argument(
        "-n",
        "--number",
        type=int,
        help="Number of the completed build (default: last build number + 1)",
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command == "index":
        return index_command(args)
    elif args.command == "edges":
        return edges_command(args)
    elif args.command == "snapshot":
        return snapshot_command(args)
    elif args.command == "trigger":
        return trigger_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""CLI entry point for cmdwatch: watch files and run commands on change."""

import argparse
import asyncio
import logging
import sys

from cmdwatch import __version__
from cmdwatch.config import WatchConfig
from cmdwatch.controller import WatchController
from cmdwatch.errors import StartupError
from cmdwatch.notifier import LoggingNotifier

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="cmdwatch",
        description="File watcher for triggering commands on file changes.",
        epilog="Examples:\n"
        '  cmdwatch "make build"                      # Rebuild on any change\n'
        '  cmdwatch "go build ./..." "./server" -w src # Build, then restart\n'
        '  cmdwatch "pytest -q" -g "*.py" -i ".git/*,*.tmp"',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "commands",
        nargs="+",
        metavar="command",
        help="Command line to run on change (split on whitespace, no shell quoting)",
    )

    parser.add_argument(
        "-w",
        "--watch",
        action="append",
        help="File or directory to watch recursively; repeatable or comma-separated (default: .)",
    )

    parser.add_argument(
        "-I",
        "--ignore-file",
        default="",
        help="File of newline-separated glob patterns to ignore",
    )

    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        help="Glob pattern to ignore; repeatable or comma-separated (default: .git/*)",
    )

    parser.add_argument(
        "-g",
        "--glob",
        action="append",
        help="Only trigger for paths matching this glob; repeatable or comma-separated",
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Polling interval in seconds (default: 1.0)",
    )

    parser.add_argument(
        "--native",
        action="store_true",
        help="Use native filesystem notifications instead of polling",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_intermixed_args(argv)
    if args.interval <= 0:
        parser.error("--interval must be positive")
    if any(not command.split() for command in args.commands):
        parser.error("commands must not be empty")
    return args


def setup_logging(verbosity: int) -> None:
    """Configure stderr logging for the given -v count."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("cmdwatch").setLevel(level)


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the cmdwatch CLI.

    Handles:
    - Argument parsing (usage errors exit with status 2)
    - Startup validation (fatal errors exit with status 1)
    - Running the watch loop until interrupted
    """
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = WatchConfig.from_args(args)
        controller = WatchController(config, notifier=LoggingNotifier())
        asyncio.run(controller.run())
    except KeyboardInterrupt:
        sys.exit(130)
    except StartupError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logging.getLogger(__name__).debug("Unhandled error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

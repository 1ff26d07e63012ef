"""Startup configuration built from command-line arguments."""

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path

from cmdwatch.errors import IgnoreFileError, WorkingDirectoryError
from cmdwatch.models import CommandSpec
from cmdwatch.watchers import WatcherConfig

logger = logging.getLogger(__name__)

DEFAULT_WATCH = ["."]
DEFAULT_IGNORE = [".git/*"]


def split_list(values: list[str] | None) -> list[str]:
    """Flatten repeated, comma-separated option values.

    ``["a,b", "c"]`` becomes ``["a", "b", "c"]``; empty items are dropped.
    """
    items: list[str] = []
    for value in values or []:
        items.extend(item.strip() for item in value.split(",") if item.strip())
    return items


def parse_ignore_lines(text: str) -> list[str]:
    """Extract patterns from ignore-file contents.

    Blank lines and ``#`` comments are skipped.
    """
    patterns = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


@dataclass
class WatchConfig:
    """Everything the watch loop needs, fixed for the process lifetime."""

    commands: tuple[CommandSpec, ...]
    """Commands run on each trigger, in order."""

    watch: list[Path] = field(default_factory=lambda: [Path(p) for p in DEFAULT_WATCH])
    """Roots watched recursively."""

    ignore_file: Path | None = None
    """File of newline-separated exclude patterns."""

    ignore: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    """Inline exclude patterns."""

    include: list[str] = field(default_factory=list)
    """Include patterns; empty means every path is of interest."""

    poll_interval: float = 1.0
    use_polling: bool = True

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "WatchConfig":
        """Build config from parsed CLI arguments.

        Raises:
            CommandParseError: If a command is empty after splitting
        """
        watch = split_list(args.watch) or DEFAULT_WATCH
        ignore = split_list(args.ignore) if args.ignore is not None else list(DEFAULT_IGNORE)
        return cls(
            commands=tuple(CommandSpec.parse(line) for line in args.commands),
            watch=[Path(p) for p in watch],
            ignore_file=Path(args.ignore_file) if args.ignore_file else None,
            ignore=ignore,
            include=split_list(args.glob),
            poll_interval=args.interval,
            use_polling=not args.native,
        )

    def load_ignore_patterns(self) -> list[str]:
        """Read the ignore file, if one is configured.

        Returns:
            Patterns from the file (empty when no file is configured)

        Raises:
            IgnoreFileError: If the file cannot be read
        """
        if self.ignore_file is None:
            return []
        try:
            text = self.ignore_file.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise IgnoreFileError(f"Cannot read ignore file {self.ignore_file}: {e}") from e
        patterns = parse_ignore_lines(text)
        logger.debug(f"Loaded {len(patterns)} pattern(s) from {self.ignore_file}")
        return patterns

    def resolve_working_dir(self) -> Path:
        """Resolve the directory event paths are made relative to.

        Raises:
            WorkingDirectoryError: If the working directory is unavailable
        """
        try:
            return Path.cwd()
        except OSError as e:
            raise WorkingDirectoryError(f"Cannot determine working directory: {e}") from e

    def watcher_config(self) -> WatcherConfig:
        return WatcherConfig(
            roots=list(self.watch),
            poll_interval=self.poll_interval,
            use_polling=self.use_polling,
        )

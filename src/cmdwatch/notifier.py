"""Run lifecycle notifications.

The runner and controller report what happened to a run through a
:class:`RunNotifier`; the notifier decides how to tell the user. Hosts
embedding the controller can pass their own implementation.
"""

import logging
from collections.abc import Sequence
from typing import Protocol

from cmdwatch.models import CommandResult, CommandSpec, RunResult


class RunNotifier(Protocol):
    """Receives run lifecycle events from the controller and runner."""

    def watch_started(self, roots: Sequence[object], commands: Sequence[CommandSpec]) -> None:
        """The watch loop is up and waiting for changes."""
        ...

    def command_failed(self, result: CommandResult, skipped: int) -> None:
        """A command could not be launched or exited non-zero.

        Args:
            result: The failed command's result
            skipped: Number of later commands not run because of it
        """
        ...

    def run_succeeded(self, result: RunResult) -> None:
        """Every command in the sequence exited zero."""
        ...


class NoOpNotifier:
    """Silent notifier - default when embedded without one."""

    def watch_started(self, roots, commands) -> None:
        pass

    def command_failed(self, result, skipped) -> None:
        pass

    def run_succeeded(self, result) -> None:
        pass


class LoggingNotifier:
    """Reports run outcomes as log records - used by the CLI.

    Launch failures log at ERROR, non-zero exits at WARNING and successful
    runs at INFO, so the default CLI verbosity only shows failures.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("cmdwatch")

    def watch_started(self, roots: Sequence[object], commands: Sequence[CommandSpec]) -> None:
        watched = ", ".join(str(root) for root in roots)
        self.logger.info(f"Watching {watched}; will run {len(commands)} command(s)")

    def command_failed(self, result: CommandResult, skipped: int) -> None:
        if result.error is not None:
            self.logger.error(f"Could not run '{result.command}': {result.error}")
            return
        message = f"'{result.command}' exited with status {result.returncode}"
        if skipped:
            message += f"; skipping {skipped} remaining command(s)"
        self.logger.warning(message)

    def run_succeeded(self, result: RunResult) -> None:
        self.logger.info(f"Ran {len(result.results)} command(s) successfully")

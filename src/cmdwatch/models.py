"""Shared data models for cmdwatch."""

from dataclasses import dataclass, field
from enum import Enum

from cmdwatch.errors import CommandParseError


class Operation(str, Enum):
    """Filesystem operations that can trigger a run."""

    CREATE = "create"
    WRITE = "write"
    RENAME = "rename"


@dataclass(frozen=True)
class WatchEvent:
    """A single filesystem change notification."""

    path: str
    """Absolute path of the changed file (empty for synthetic events)."""

    operation: Operation | None = None
    """What happened to the path. None for synthetic events."""

    @classmethod
    def synthetic(cls) -> "WatchEvent":
        """Create the follow-up trigger re-emitted after a busy run."""
        return cls(path="", operation=None)

    @property
    def is_synthetic(self) -> bool:
        return self.operation is None


@dataclass(frozen=True)
class CommandSpec:
    """One configured command: executable plus arguments."""

    executable: str
    args: tuple[str, ...] = ()

    @classmethod
    def parse(cls, line: str) -> "CommandSpec":
        """Split a command line on whitespace.

        No shell quoting or escaping is performed.

        Args:
            line: Command line such as "go build ./..."

        Returns:
            CommandSpec for the line

        Raises:
            CommandParseError: If the line holds no executable
        """
        parts = line.split()
        if not parts:
            raise CommandParseError(f"Empty command: {line!r}")
        return cls(executable=parts[0], args=tuple(parts[1:]))

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass
class CommandResult:
    """Outcome of a single command within a run."""

    command: CommandSpec

    returncode: int | None = None
    """Exit status, or None if the process never started."""

    output: str = ""
    """Combined stdout and stderr."""

    error: str | None = None
    """Launch error message, if the process could not be started."""

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.returncode == 0


@dataclass
class RunResult:
    """Outcome of one pass over the command sequence."""

    results: list[CommandResult] = field(default_factory=list)

    aborted: bool = False
    """True if a failing command stopped the remaining sequence."""

    @property
    def output(self) -> str:
        """Combined output of every command that ran, in order."""
        return "".join(r.output for r in self.results)

    @property
    def succeeded(self) -> bool:
        return not self.aborted and all(r.succeeded for r in self.results)


class CoalescerState(Enum):
    """States of the debounce/coalescing loop."""

    IDLE = "idle"
    RUNNING = "running"
    RUNNING_PENDING = "running+pending"

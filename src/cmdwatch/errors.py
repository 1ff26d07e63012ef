"""Exception hierarchy for cmdwatch.

Startup errors make the watch non-functional and end the process. Pattern
errors are recovered per event inside the filter. Failing commands are not
exceptions at all; they are recorded in the run result.
"""


class CmdwatchError(Exception):
    """Base exception for all cmdwatch errors."""

    pass


class StartupError(CmdwatchError):
    """Fatal error raised before the watch loop starts."""

    pass


class IgnoreFileError(StartupError):
    """The ignore file could not be read."""

    pass


class WorkingDirectoryError(StartupError):
    """The current working directory could not be resolved."""

    pass


class WatchRegistrationError(StartupError):
    """A watch root could not be registered."""

    pass


class CommandParseError(StartupError):
    """A command line is empty after splitting."""

    pass


class PatternError(CmdwatchError):
    """A glob pattern is malformed."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Bad glob pattern {pattern!r}: {reason}")

"""cmdwatch: run a command sequence whenever watched files change."""

__version__ = "0.1.0"

# Public API
from cmdwatch.coalescer import Coalescer
from cmdwatch.config import WatchConfig
from cmdwatch.controller import WatchController
from cmdwatch.filters import FilterChain, GlobFilter
from cmdwatch.models import CommandResult, CommandSpec, Operation, RunResult, WatchEvent
from cmdwatch.runner import CommandRunner

__all__ = [
    "__version__",
    # Primary components
    "WatchController",
    "WatchConfig",
    "Coalescer",
    "CommandRunner",
    # Filtering
    "FilterChain",
    "GlobFilter",
    # Models
    "CommandSpec",
    "CommandResult",
    "RunResult",
    "Operation",
    "WatchEvent",
]

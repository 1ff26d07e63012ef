"""Watch source protocol and its configuration."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from cmdwatch.models import WatchEvent


@dataclass
class WatcherConfig:
    """Configuration for a watch source."""

    roots: list[Path] = field(default_factory=lambda: [Path(".")])
    """Directories (or single files) to watch recursively."""

    poll_interval: float = 1.0
    """Seconds between filesystem polls."""

    use_polling: bool = True
    """Poll the filesystem instead of using native notifications."""


class EventSource(Protocol):
    """Protocol for anything that feeds filtered watch events to a queue."""

    def register(self) -> None:
        """Register all watch roots. Raises WatchRegistrationError."""
        ...

    def start(self, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[WatchEvent]") -> None:
        """Start delivering events onto ``queue`` via ``loop``."""
        ...

    def stop(self) -> None:
        """Stop watching."""
        ...

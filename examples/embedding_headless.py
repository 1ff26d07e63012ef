#!/usr/bin/env python3
"""
Example: Embedding the watch loop
Shows how to use WatchController from another asyncio program.

This example demonstrates:
- Building a WatchConfig in code instead of from CLI flags
- Receiving a RunResult after every command run
- Stopping the loop programmatically
"""

import asyncio
import sys
from pathlib import Path

try:
    from cmdwatch import CommandSpec, WatchConfig, WatchController
    from cmdwatch.notifier import LoggingNotifier
except ImportError:
    print("Error: Install cmdwatch first: pip install -e .")
    exit(1)


async def main(max_runs: int = 3) -> None:
    """Watch the current directory and stop after a few runs."""
    config = WatchConfig(
        commands=(
            CommandSpec(sys.executable, ("-c", "print('checking...')")),
            CommandSpec(sys.executable, ("-c", "print('done')")),
        ),
        watch=[Path(".")],
        include=["*.py"],
        poll_interval=0.5,
    )
    controller = WatchController(config, notifier=LoggingNotifier())

    runs = 0

    def on_finished(result) -> None:
        nonlocal runs
        runs += 1
        status = "ok" if result.succeeded else "failed"
        print(f"--- run {runs}: {status} ({len(result.results)} command(s))")
        if runs >= max_runs:
            controller.stop()

    controller.on_run_finished = on_finished

    print("Edit any .py file to trigger a run (Ctrl+C to quit)")
    await controller.run()


if __name__ == "__main__":
    asyncio.run(main())

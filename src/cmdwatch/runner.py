"""Sequential command execution with streamed output."""

import asyncio
import codecs
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from cmdwatch.models import CommandResult, CommandSpec, RunResult
from cmdwatch.notifier import NoOpNotifier, RunNotifier

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096


class CommandRunner:
    """Runs the configured command sequence once per trigger.

    Commands run one after another; the first failure stops the rest.
    Combined stdout/stderr of each command is written to ``output`` as it
    arrives. Cancelling the task that awaits :meth:`run` terminates the
    subprocess in flight.
    """

    def __init__(
        self,
        commands: Sequence[CommandSpec],
        output: TextIO | None = None,
        notifier: RunNotifier | None = None,
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        kill_timeout: float = 5.0,
    ):
        """Initialize runner.

        Args:
            commands: Commands to run, in order
            output: Stream for command output (defaults to sys.stdout)
            notifier: Where failures are reported (defaults to silent)
            cwd: Working directory for the subprocesses
            env: Environment for the subprocesses (defaults to inherited)
            kill_timeout: Seconds to wait after SIGTERM before SIGKILL
        """
        if not commands:
            raise ValueError("At least one command is required")
        self.commands = tuple(commands)
        self._output = output
        self.notifier = notifier or NoOpNotifier()
        self.cwd = cwd
        self.env = env
        self.kill_timeout = kill_timeout
        self.process: asyncio.subprocess.Process | None = None
        """Most recently started subprocess."""

    @property
    def output(self) -> TextIO:
        # Resolved lazily so a replaced sys.stdout is honoured.
        return self._output if self._output is not None else sys.stdout

    async def run(self) -> RunResult:
        """Run every command in order, stopping at the first failure.

        Returns:
            RunResult with one CommandResult per command that was started
        """
        result = RunResult()
        for command in self.commands:
            command_result = await self._run_one(command)
            result.results.append(command_result)
            if not command_result.succeeded:
                result.aborted = True
                self.notifier.command_failed(command_result, len(self.commands) - len(result.results))
                break
        else:
            self.notifier.run_succeeded(result)
        return result

    async def _run_one(self, command: CommandSpec) -> CommandResult:
        logger.debug(f"Starting: {command}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=self.cwd,
                env=self.env,
            )
        except OSError as e:
            logger.debug(f"Launch failed for {command}: {e}")
            return CommandResult(command=command, error=str(e))

        self.process = process
        try:
            output = await self._pump(process)
            returncode = await process.wait()
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        logger.debug(f"Finished: {command} (exit {returncode})")
        return CommandResult(command=command, returncode=returncode, output=output)

    async def _pump(self, process: asyncio.subprocess.Process) -> str:
        """Copy the process output to the output stream until EOF."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        chunks: list[str] = []
        assert process.stdout is not None
        while True:
            data = await process.stdout.read(_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                self.output.write(text)
                self.output.flush()
            if not data:
                break
        return "".join(chunks)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Stop a subprocess: SIGTERM, then SIGKILL after the grace period."""
        if process.returncode is not None:
            return
        logger.debug(f"Terminating process {process.pid}")
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Process {process.pid} ignored SIGTERM, killing it")
            process.kill()
            await process.wait()

"""Tests for cmdwatch.runner module."""

import asyncio
import io
import sys
from unittest.mock import MagicMock

import pytest

from cmdwatch.models import CommandSpec
from cmdwatch.runner import CommandRunner


class TestSequencing:
    """Commands run in order and stop at the first failure."""

    @pytest.mark.asyncio
    async def test_runs_all_commands_in_order(self, py_command):
        out = io.StringIO()
        runner = CommandRunner(
            [py_command("print('one')"), py_command("print('two')"), py_command("print('three')")],
            output=out,
        )

        result = await runner.run()

        assert result.succeeded
        assert not result.aborted
        assert len(result.results) == 3
        assert out.getvalue().split() == ["one", "two", "three"]
        assert result.output == out.getvalue()

    @pytest.mark.asyncio
    async def test_fail_fast(self, py_command, tmp_path):
        marker_b = tmp_path / "b-ran"
        marker_c = tmp_path / "c-ran"
        out = io.StringIO()
        runner = CommandRunner(
            [
                py_command("import sys; print('A output'); sys.exit(3)"),
                py_command(f"open({str(marker_b)!r}, 'w').close(); print('B output')"),
                py_command(f"open({str(marker_c)!r}, 'w').close(); print('C output')"),
            ],
            output=out,
        )

        result = await runner.run()

        assert result.aborted
        assert not result.succeeded
        assert len(result.results) == 1
        assert result.results[0].returncode == 3
        assert not marker_b.exists()
        assert not marker_c.exists()
        assert out.getvalue().strip() == "A output"
        assert result.output.strip() == "A output"

    @pytest.mark.asyncio
    async def test_failure_in_middle_keeps_earlier_output(self, py_command):
        out = io.StringIO()
        runner = CommandRunner(
            [py_command("print('first')"), py_command("raise SystemExit(1)"), py_command("print('never')")],
            output=out,
        )

        result = await runner.run()

        assert result.aborted
        assert len(result.results) == 2
        assert "first" in out.getvalue()
        assert "never" not in out.getvalue()

    @pytest.mark.asyncio
    async def test_failure_is_reported_to_notifier(self, py_command):
        notifier = MagicMock()
        runner = CommandRunner(
            [py_command("raise SystemExit(2)"), py_command("pass")],
            output=io.StringIO(),
            notifier=notifier,
        )

        await runner.run()

        notifier.command_failed.assert_called_once()
        failed, skipped = notifier.command_failed.call_args[0]
        assert failed.returncode == 2
        assert skipped == 1
        notifier.run_succeeded.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_is_reported_to_notifier(self, py_command):
        notifier = MagicMock()
        runner = CommandRunner([py_command("pass")], output=io.StringIO(), notifier=notifier)

        await runner.run()

        notifier.run_succeeded.assert_called_once()
        notifier.command_failed.assert_not_called()


class TestOutput:
    """Output capture and passthrough."""

    @pytest.mark.asyncio
    async def test_stderr_is_combined_with_stdout(self, py_command):
        out = io.StringIO()
        runner = CommandRunner(
            [py_command("import sys; print('to-out', flush=True); print('to-err', file=sys.stderr, flush=True)")],
            output=out,
        )

        result = await runner.run()

        assert "to-out" in out.getvalue()
        assert "to-err" in out.getvalue()
        assert "to-err" in result.results[0].output

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, py_command):
        out = io.StringIO()
        runner = CommandRunner(
            [py_command("import sys; sys.stdout.buffer.write(b'ok\\xff\\n')")],
            output=out,
        )

        await runner.run()

        assert out.getvalue().startswith("ok")
        assert "�" in out.getvalue()

    @pytest.mark.asyncio
    async def test_defaults_to_sys_stdout(self, py_command, capsys):
        runner = CommandRunner([py_command("print('hello stdout')")])

        await runner.run()

        assert "hello stdout" in capsys.readouterr().out


class TestLaunchFailure:
    """Commands that cannot be started."""

    @pytest.mark.asyncio
    async def test_missing_executable_aborts_sequence(self, py_command, tmp_path):
        marker = tmp_path / "ran"
        notifier = MagicMock()
        runner = CommandRunner(
            [
                CommandSpec("definitely-not-a-real-executable-cmdwatch"),
                py_command(f"open({str(marker)!r}, 'w').close()"),
            ],
            output=io.StringIO(),
            notifier=notifier,
        )

        result = await runner.run()

        assert result.aborted
        assert result.results[0].error is not None
        assert result.results[0].returncode is None
        assert not marker.exists()
        notifier.command_failed.assert_called_once_with(result.results[0], 1)

    def test_requires_commands(self):
        with pytest.raises(ValueError):
            CommandRunner([])


class TestCancellation:
    """Cancelling the run terminates the subprocess."""

    @pytest.mark.asyncio
    async def test_cancel_terminates_process(self, py_command):
        runner = CommandRunner(
            [py_command("import time; print('started', flush=True); time.sleep(60)")],
            output=io.StringIO(),
            kill_timeout=2.0,
        )

        task = asyncio.create_task(runner.run())
        for _ in range(100):
            if runner.process is not None:
                break
            await asyncio.sleep(0.05)
        await asyncio.sleep(0.2)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert runner.process is not None
        assert runner.process.returncode is not None

    @pytest.mark.skipif(sys.platform == "win32", reason="SIGTERM cannot be ignored on Windows")
    @pytest.mark.asyncio
    async def test_process_ignoring_sigterm_is_killed(self, py_command):
        code = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "print('ready', flush=True)\n"
            "time.sleep(60)\n"
        )
        out = io.StringIO()
        runner = CommandRunner([py_command(code)], output=out, kill_timeout=0.2)

        task = asyncio.create_task(runner.run())
        for _ in range(200):
            if "ready" in out.getvalue():
                break
            await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert runner.process.returncode is not None

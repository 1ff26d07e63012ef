"""Tests for cmdwatch.cli module."""

import logging
import sys
from io import StringIO
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cmdwatch.cli import main, parse_args, setup_logging
from cmdwatch.errors import WatchRegistrationError


class TestParseArgs:
    """Tests for parse_args function."""

    def test_parse_args_commands(self):
        args = parse_args(["go build", "./server"])
        assert args.commands == ["go build", "./server"]

    def test_parse_args_defaults(self):
        args = parse_args(["make"])
        assert args.watch is None
        assert args.ignore is None
        assert args.ignore_file == ""
        assert args.glob is None
        assert args.interval == 1.0
        assert args.native is False
        assert args.verbose == 0

    def test_parse_args_short_flags(self):
        args = parse_args(["make", "-w", "src", "-I", ".watchignore", "-i", "*.tmp", "-g", "*.go", "-vv"])
        assert args.watch == ["src"]
        assert args.ignore_file == ".watchignore"
        assert args.ignore == ["*.tmp"]
        assert args.glob == ["*.go"]
        assert args.verbose == 2

    def test_parse_args_long_flags(self):
        args = parse_args(["make", "--watch", "a,b", "--ignore-file", "f", "--ignore", "x", "--interval", "0.5"])
        assert args.watch == ["a,b"]
        assert args.ignore_file == "f"
        assert args.ignore == ["x"]
        assert args.interval == 0.5

    def test_parse_args_flags_between_commands(self):
        args = parse_args(["make", "-w", "src", "./server", "-i", "*.tmp", "./client"])
        assert args.commands == ["make", "./server", "./client"]
        assert args.watch == ["src"]
        assert args.ignore == ["*.tmp"]

    def test_zero_commands_is_usage_error(self):
        with patch("sys.stderr", new_callable=StringIO), pytest.raises(SystemExit) as exc_info:
            parse_args([])
        assert exc_info.value.code == 2

    def test_blank_command_is_usage_error(self):
        with patch("sys.stderr", new_callable=StringIO), pytest.raises(SystemExit) as exc_info:
            parse_args(["  "])
        assert exc_info.value.code == 2

    def test_non_positive_interval_is_usage_error(self):
        with patch("sys.stderr", new_callable=StringIO), pytest.raises(SystemExit) as exc_info:
            parse_args(["make", "--interval", "0"])
        assert exc_info.value.code == 2

    def test_parse_args_version_flag(self):
        with patch("sys.stdout", new_callable=StringIO), pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_parse_args_help_flag(self):
        with patch("sys.stdout", new_callable=StringIO), pytest.raises(SystemExit) as exc_info:
            parse_args(["--help"])
        assert exc_info.value.code == 0


class TestSetupLogging:
    """Tests for verbosity mapping."""

    @pytest.mark.parametrize(
        "verbosity,level",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_levels(self, verbosity, level):
        setup_logging(verbosity)
        assert logging.getLogger("cmdwatch").level == level


class TestMain:
    """Tests for main function."""

    def test_main_zero_commands_starts_no_watch(self):
        with (
            patch("cmdwatch.cli.WatchController") as mock_controller,
            patch("sys.stderr", new_callable=StringIO),
            pytest.raises(SystemExit) as exc_info,
        ):
            main([])

        assert exc_info.value.code == 2
        mock_controller.assert_not_called()

    def test_main_runs_controller(self):
        with patch("cmdwatch.cli.WatchController") as mock_controller:
            mock_instance = MagicMock()
            mock_instance.run = AsyncMock()
            mock_controller.return_value = mock_instance

            main(["make build", "-w", "."])

            config = mock_controller.call_args[0][0]
            assert [str(c) for c in config.commands] == ["make build"]
            mock_instance.run.assert_awaited_once()

    def test_main_bad_ignore_file_exits_1(self, in_tmp_cwd):
        stderr = StringIO()
        with patch("sys.stderr", stderr), pytest.raises(SystemExit) as exc_info:
            main(["make", "-I", str(in_tmp_cwd / "missing")])

        assert exc_info.value.code == 1
        assert "Error:" in stderr.getvalue()

    def test_main_registration_failure_exits_1(self):
        with (
            patch("cmdwatch.cli.WatchController") as mock_controller,
            patch("sys.stderr", new_callable=StringIO) as stderr,
            pytest.raises(SystemExit) as exc_info,
        ):
            mock_instance = MagicMock()
            mock_instance.run = AsyncMock(side_effect=WatchRegistrationError("Watch root does not exist: nope"))
            mock_controller.return_value = mock_instance

            main(["make", "-w", "nope"])

        assert exc_info.value.code == 1
        assert "nope" in stderr.getvalue()

    def test_main_keyboard_interrupt(self):
        with patch("cmdwatch.cli.WatchController") as mock_controller:
            mock_instance = MagicMock()
            mock_instance.run = AsyncMock(side_effect=KeyboardInterrupt())
            mock_controller.return_value = mock_instance

            with pytest.raises(SystemExit) as exc_info:
                main(["make"])

            # Exit code 130 for Ctrl+C
            assert exc_info.value.code == 130

    def test_main_missing_watch_root_exits_1(self, in_tmp_cwd):
        with patch.object(sys, "stderr", new_callable=StringIO), pytest.raises(SystemExit) as exc_info:
            main(["make", "-w", str(in_tmp_cwd / "does-not-exist")])

        assert exc_info.value.code == 1

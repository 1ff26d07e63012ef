"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from cmdwatch.models import CommandSpec  # noqa: E402


@pytest.fixture
def py_command():
    """Factory for commands that run a Python snippet with this interpreter."""

    def make(code: str) -> CommandSpec:
        return CommandSpec(executable=sys.executable, args=("-c", code))

    return make


@pytest.fixture
def in_tmp_cwd(tmp_path, monkeypatch):
    """Run the test with tmp_path as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path

"""Shared fixtures for the sshmux test suite.

Fakes for paramiko objects live in fakes.py next to this file.
"""

import logging

import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def logger() -> logging.Logger:
    """Logger handed to components under test."""
    return logging.getLogger("sshmux.tests")


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point HOME at a temporary directory with an empty ~/.ssh."""
    monkeypatch.setenv("HOME", str(tmp_path))
    ssh_dir = tmp_path / ".ssh"
    ssh_dir.mkdir()
    return tmp_path


@pytest.fixture
def write_config(tmp_path):
    """Write an OpenSSH config file and return its path."""

    def _write(text: str, name: str = "config"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write

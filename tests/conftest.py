"""Shared test fixtures for netpipe.

Provides reusable fixtures for building network contexts over
:class:`httpx.MockTransport`, isolating configuration, managing output
state, and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from netpipe.context import NetworkContext
from netpipe.models import NetworkConfig
from netpipe.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com/v1/"


# ---------------------------------------------------------------------------
# Network context factory
# ---------------------------------------------------------------------------


def _make_context(
    handler: Callable[[httpx.Request], Any],
    **config: Any,
) -> NetworkContext:
    config.setdefault("base_url", BASE_URL)
    return NetworkContext().init(NetworkConfig(**config), transport=httpx.MockTransport(handler))


@pytest.fixture
def make_context() -> Callable[..., NetworkContext]:
    """Return a factory initialising a context over an httpx.MockTransport.

    Call it with a request handler and any :class:`NetworkConfig` fields;
    ``base_url`` defaults to :data:`BASE_URL`.
    """
    return _make_context


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, forces the XDG layout,
    clears all NETPIPE_* environment variables, and changes the working
    directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("netpipe.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["NETPIPE_BASE_URL", "NETPIPE_DEBUG", "NETPIPE_UNSAFE_TLS"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    """Return a helper writing *data* as JSON to *path*, creating parent dirs."""

    def _write(path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a PLAIN-format, verbose OutputManager so debug lines reach stderr."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

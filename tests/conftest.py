"""Shared test fixtures for MiniBank Console."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from minibank_console.cli.main import app
from minibank_console.core.config import ResolvedConfig
from tests.fake_backend import FakeBackend

API_URL = "http://backend.test"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep the user's config file and environment out of every test."""
    monkeypatch.setattr(
        "minibank_console.core.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.toml"
    )
    for var in ("MINIBANK_API_URL", "MINIBANK_TIMEOUT", "MINIBANK_PROFILE", "SENTRY_DSN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def backend():
    """Fake MiniBank API."""
    return FakeBackend()


@pytest.fixture
def resolved_config():
    return ResolvedConfig(api_url=API_URL, timeout=5.0)


@pytest.fixture
def cli_runner(runner, backend):
    """Invoke the CLI app against the fake backend."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(
            app,
            ["--api-url", API_URL, *args],
            obj={"transport": backend.transport()},
            **kwargs,
        )

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)

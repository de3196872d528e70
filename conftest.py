"""Shared fixtures for the envfile test suite."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from loguru import logger

from imbue.envfile.config import ENV_FILE_PATH_VAR
from imbue.envfile.config import LOG_LEVEL_VAR
from imbue.envfile.config import OUTPUT_FORMAT_VAR
from imbue.envfile.session import EnvFileSession


@pytest.fixture(autouse=True)
def isolate_envfile_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep ENVFILE_* settings from the developer's shell out of the tests.

    Also drops any loguru handlers a CLI invocation installed, since those point at streams
    that the CliRunner closes once the invocation is over.
    """
    for var_name in (ENV_FILE_PATH_VAR, LOG_LEVEL_VAR, OUTPUT_FORMAT_VAR):
        monkeypatch.delenv(var_name, raising=False)
    yield
    logger.remove()


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Create a Click CLI runner for testing CLI commands."""
    return CliRunner()


@pytest.fixture()
def env_path(tmp_path: Path) -> Path:
    """Path to a not-yet-created .env file in a temporary directory."""
    return tmp_path / ".env"


@pytest.fixture()
def session(env_path: Path) -> EnvFileSession:
    """A session on env_path, which starts out missing (and therefore empty)."""
    return EnvFileSession.open(env_path)

"""Shared test fixtures.

Async tests run on asyncio through the anyio pytest plugin
(``@pytest.mark.anyio``).  Nothing here touches the network: HTTP goes
through ``httpx.MockTransport`` and scripts are short-lived Python children.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

_ENV_VARS = (
    "AUTH_KEY",
    "ADDRESS",
    "PORT",
    "REQUEST_INTERVAL",
    "REQUEST_TIMEOUT",
    "SCRIPT_DELAY",
    "SCRIPTS_FILE",
    "LOG_LEVEL",
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_loguru() -> Iterator[None]:
    """Restore loguru's default stderr sink after each test."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru output as ``"LEVEL message"`` strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda msg: messages.append(f"{msg.record['level'].name} {msg.record['message']}"),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[pytest.MonkeyPatch]:
    """Unset every bridge variable and run from an empty directory (no ``.env``)."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    yield monkeypatch


@pytest.fixture
def python_script(tmp_path: Path):
    """Write a tiny Python script and return the argv that runs it."""

    def _make(body: str, name: str = "script.py") -> list[str]:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return [sys.executable, str(path)]

    return _make

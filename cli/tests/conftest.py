"""Shared test fixtures for CLI tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
import structlog

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_config_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Isolate tests from the real user config directory.

    Sets XDG_CONFIG_HOME to a temporary directory so that tests never read
    or overwrite ~/.config/strand/config.yaml.
    """
    config_home = tmp_path / "xdg_config"
    config_home.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("COLUMNS", "200")

    yield config_home


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo the logging setup done by each CLI invocation.

    The CLI points structlog at the runner's stderr, which is closed once
    the invocation returns.
    """
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes a config file and returns its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    """Plugin directory path inside the test's temporary directory."""
    return tmp_path / "plugins"

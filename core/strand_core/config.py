"""Configuration management for strand.

This module provides YAML-based configuration loading following the XDG Base
Directory Specification, plus the plugin directory helpers used before a run.

Example config file::

    plugin_dir: ~/.vim/pack/strand/start
    max_attempts: 5
    retry_backoff: 2.0
    plugins:
      - tpope/vim-surround
      - gitlab@bob/lib:main
      - Git: junegunn/fzf.vim
      - Archive: https://example.com/plugin.tar.gz
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .models import StrandConfig

logger = structlog.get_logger(__name__)

APP_NAME = "strand"


def get_config_dir() -> Path:
    """Get the configuration directory following XDG spec.

    Returns:
        Path to the configuration directory.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    return base / APP_NAME


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return get_config_dir() / "config.yaml"


def expand_path(path: Path) -> Path:
    """Replace a leading ``~`` component with the user's home directory."""
    if path.parts and path.parts[0] == "~":
        return Path.home().joinpath(*path.parts[1:])
    return path


class YamlConfigLoader:
    """Loads raw configuration dictionaries from YAML files."""

    def load(self, path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            yaml.YAMLError: If the file is not valid YAML.
        """
        if not path.exists():
            logger.debug("config_file_not_found", path=str(path))
            raise FileNotFoundError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text())
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        return data

    def save(self, config: dict[str, Any], path: Path) -> None:
        """Save configuration to a YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.dump(config, default_flow_style=False, sort_keys=False))
        logger.info("config_saved", path=str(path))


class ConfigManager:
    """Loads and validates the strand configuration file."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        Uses default path if not provided.
        """
        self.config_path = config_path or get_default_config_path()
        self._loader = YamlConfigLoader()
        self._config: StrandConfig | None = None

    def load(self) -> StrandConfig:
        """Load and validate the configuration file.

        Raises:
            ConfigError: If the file is missing, not YAML, or invalid.
        """
        try:
            data = self._loader.load(self.config_path)
        except FileNotFoundError as e:
            raise ConfigError(str(e)) from e
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read {self.config_path}: {e}") from e

        try:
            self._config = StrandConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}:\n{e}") from e

        logger.debug(
            "config_loaded",
            path=str(self.config_path),
            plugin_dir=str(self._config.plugin_dir),
            plugins=len(self._config.plugins),
        )
        return self._config

    def get_config(self) -> StrandConfig:
        """Get the current configuration, loading it if needed."""
        if self._config is None:
            return self.load()
        return self._config

    def save(self, config: StrandConfig) -> None:
        """Write ``config`` to the configuration file.

        Plugins are stored as spec strings and archive mappings the loader
        accepts back.
        """
        data = config.model_dump(mode="json", exclude={"plugins"}, exclude_defaults=True)
        data["plugin_dir"] = str(config.plugin_dir)
        data["plugins"] = [
            {"Archive": p.url} if p.kind == "archive" else str(p) for p in config.plugins
        ]
        self._loader.save(data, self.config_path)
        self._config = config


def ensure_empty_dir(path: Path) -> None:
    """Make ``path`` an empty directory, removing whatever is there now."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()

    path.mkdir(parents=True, exist_ok=True)
    logger.debug("plugin_dir_cleaned", path=str(path))

"""Strand Core Library.

Core library for installing plugins from Git hosting providers or archive URLs
into a local plugin directory.

Module Overview:
    config: YAML-based configuration management (XDG spec compliant)
    errors: Exception hierarchy rooted at StrandError
    extractor: gzip+tar extraction into the plugin directory
    fetcher: Archive download with bounded fixed-backoff retry
    installer: Single-plugin install state machine
    interfaces: Progress renderer base class and logging renderer
    models: Pydantic models for plugins and configuration, install states
    orchestrator: Concurrent installation of a batch of plugins
    resolver: Provider-specific archive URL templates
    spec: Plugin spec string parsing
"""

from importlib.metadata import version as get_package_version

from strand_core.config import (
    ConfigManager,
    YamlConfigLoader,
    ensure_empty_dir,
    expand_path,
    get_config_dir,
    get_default_config_path,
)
from strand_core.errors import (
    ArchiveNotFoundError,
    ConfigError,
    ExtractError,
    FetchError,
    InstallError,
    MissingUserError,
    PluginParseError,
    ResolveError,
    RetriesExhaustedError,
    StrandError,
    UnknownProviderError,
)
from strand_core.extractor import extract_archive, extract_archive_async
from strand_core.fetcher import fetch_with_retry
from strand_core.installer import PluginInstaller
from strand_core.interfaces import (
    InstallChannel,
    LoggingRenderer,
    ProgressRenderer,
    describe_state,
)
from strand_core.models import (
    ArchivePlugin,
    Downloading,
    Error,
    Extracting,
    GitProvider,
    GitRepo,
    Installed,
    InstallResult,
    InstallState,
    InstallStateKind,
    InstallSummary,
    LogLevel,
    Plugin,
    Retry,
    StrandConfig,
)
from strand_core.orchestrator import InstallOrchestrator
from strand_core.resolver import resolve_url
from strand_core.spec import parse_plugin, parse_provider

__version__ = get_package_version("strand")

__all__ = [
    "ArchiveNotFoundError",
    "ArchivePlugin",
    "ConfigError",
    "ConfigManager",
    "Downloading",
    "Error",
    "ExtractError",
    "Extracting",
    "FetchError",
    "GitProvider",
    "GitRepo",
    "InstallChannel",
    "InstallError",
    "InstallOrchestrator",
    "InstallResult",
    "InstallState",
    "InstallStateKind",
    "InstallSummary",
    "Installed",
    "LogLevel",
    "LoggingRenderer",
    "MissingUserError",
    "Plugin",
    "PluginInstaller",
    "PluginParseError",
    "ProgressRenderer",
    "ResolveError",
    "Retry",
    "RetriesExhaustedError",
    "StrandConfig",
    "StrandError",
    "UnknownProviderError",
    "YamlConfigLoader",
    "__version__",
    "describe_state",
    "ensure_empty_dir",
    "expand_path",
    "extract_archive",
    "extract_archive_async",
    "fetch_with_retry",
    "get_config_dir",
    "get_default_config_path",
    "parse_plugin",
    "parse_provider",
    "resolve_url",
]

"""Core data models for strand.

Plugins and configuration are Pydantic models; install states are small
slotted dataclasses emitted once per transition and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path  # noqa: TC003 - needed at runtime by Pydantic
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GIT_REF = "master"
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_BACKOFF = 2.0
DEFAULT_TIMEOUT_SECONDS = 300


class GitProvider(str, Enum):
    """Git hosting providers with a known tarball URL scheme."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"


class LogLevel(str, Enum):
    """Log level for CLI output."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class GitRepo(BaseModel):
    """A plugin hosted in a Git repository.

    ``git_ref`` can be a branch name, tag name, or commit hash.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["git"] = "git"
    provider: GitProvider = Field(default=GitProvider.GITHUB, description="Hosting provider")
    user: str = Field(..., description="User or organisation owning the repository")
    repo: str = Field(..., description="Repository name")
    git_ref: str = Field(default=DEFAULT_GIT_REF, min_length=1, description="Branch, tag or commit")

    @property
    def name(self) -> str:
        """Display name of the plugin."""
        return self.repo

    def __str__(self) -> str:
        return f"{self.provider.value}@{self.user}/{self.repo}:{self.git_ref}"


class ArchivePlugin(BaseModel):
    """A plugin downloaded directly from an archive URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["archive"] = "archive"
    url: str = Field(..., description="Absolute URL of a .tar.gz archive")

    @property
    def name(self) -> str:
        """Display name of the plugin."""
        return self.url

    def __str__(self) -> str:
        return self.url


Plugin = Annotated[GitRepo | ArchivePlugin, Field(discriminator="kind")]


class StrandConfig(BaseModel):
    """Complete strand configuration."""

    plugin_dir: Path = Field(..., description="Directory plugins are installed into")
    plugins: list[Plugin] = Field(default_factory=list, description="Plugins to install")
    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS, ge=1, description="Download attempts per plugin"
    )
    retry_backoff: float = Field(
        default=DEFAULT_RETRY_BACKOFF, ge=0, description="Fixed delay between attempts in seconds"
    )
    timeout_seconds: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Timeout of a single download attempt"
    )
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")

    @field_validator("plugin_dir", mode="before")
    @classmethod
    def _expand_plugin_dir(cls, value: Any) -> Any:
        from .config import expand_path

        if isinstance(value, str | Path):
            return expand_path(Path(value))
        return value

    @field_validator("plugins", mode="before")
    @classmethod
    def _parse_plugin_entries(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [_coerce_plugin_entry(entry) for entry in value]


def _coerce_plugin_entry(entry: Any) -> Any:
    """Turn a config file plugin entry into something Pydantic can validate.

    Accepts a spec string, a single-key ``{Git: ...}`` / ``{Archive: ...}``
    mapping, or a full model mapping with a ``kind`` key.
    """
    from .spec import parse_archive, parse_git_repo, parse_plugin

    if isinstance(entry, str):
        return parse_plugin(entry)
    if isinstance(entry, dict) and len(entry) == 1 and "kind" not in entry:
        ((tag, spec),) = entry.items()
        if tag == "Git" and isinstance(spec, str):
            return parse_git_repo(spec)
        if tag == "Archive" and isinstance(spec, str):
            return parse_archive(spec)
    return entry


# Install state machine. Downloading -> (Retry)* -> Extracting -> Installed,
# with Error reachable from any non-terminal state.


@dataclass(slots=True, frozen=True)
class Downloading:
    """The archive is being downloaded."""


@dataclass(slots=True, frozen=True)
class Extracting:
    """The archive is being unpacked."""


@dataclass(slots=True, frozen=True)
class Installed:
    """The plugin is installed. Terminal."""


@dataclass(slots=True, frozen=True)
class Retry:
    """A download attempt failed; ``attempt`` is the attempt about to start."""

    attempt: int


@dataclass(slots=True, frozen=True)
class Error:
    """Installation failed. Terminal."""

    cause: str


InstallStateKind = Downloading | Extracting | Installed | Retry | Error


@dataclass(slots=True)
class InstallState:
    """One state transition of one plugin's installation."""

    status: InstallStateKind
    name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition follows this state."""
        return isinstance(self.status, Installed | Error)


class InstallResult(BaseModel):
    """Outcome of installing a single plugin."""

    name: str = Field(..., description="Display name of the plugin")
    plugin: Plugin
    success: bool = Field(..., description="Whether the plugin was installed")
    error_message: str | None = Field(default=None, description="Error message if failed")
    duration_seconds: float | None = Field(default=None, description="Installation duration")


class InstallSummary(BaseModel):
    """Summary of one batch installation."""

    start_time: datetime = Field(..., description="Batch start time")
    end_time: datetime | None = Field(default=None, description="Batch end time")
    results: list[InstallResult] = Field(default_factory=list)

    @property
    def total_plugins(self) -> int:
        """Number of plugins in the batch."""
        return len(self.results)

    @property
    def installed_plugins(self) -> int:
        """Number of plugins installed successfully."""
        return sum(1 for r in self.results if r.success)

    @property
    def failed_plugins(self) -> int:
        """Number of plugins that failed."""
        return sum(1 for r in self.results if not r.success)

    @property
    def ok(self) -> bool:
        """True only if every plugin in the batch was installed."""
        return self.failed_plugins == 0

    @property
    def failures(self) -> list[InstallResult]:
        """Results of the plugins that failed."""
        return [r for r in self.results if not r.success]

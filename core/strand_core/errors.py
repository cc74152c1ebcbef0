"""Exception hierarchy for strand.

Every error raised by the core derives from StrandError. Per-plugin errors are
contained by the installer and surfaced through the Error install state; only
the CLI layer turns them into exit codes.
"""

from __future__ import annotations


class StrandError(Exception):
    """Base exception for all strand errors."""


class PluginParseError(StrandError, ValueError):
    """A plugin spec string could not be parsed.

    Also a ValueError so that Pydantic validators report it as a validation
    error when a config file contains a bad plugin spec.
    """


class UnknownProviderError(PluginParseError):
    """The provider token before '@' is not a known Git provider."""

    def __init__(self, token: str) -> None:
        super().__init__(
            f"Git provider {token!r} not recognised -- try 'github', 'gitlab' or 'bitbucket' instead"
        )
        self.token = token


class MissingUserError(PluginParseError):
    """The spec has no '/'-delimited user segment."""

    def __init__(self, spec: str) -> None:
        super().__init__(f"no user was found in plugin spec {spec!r}")
        self.spec = spec


class ResolveError(StrandError):
    """A plugin does not resolve to a valid archive URL."""


class FetchError(StrandError):
    """Exception raised when an archive download fails."""

    def __init__(self, message: str, retryable: bool = True) -> None:
        """Initialize fetch error.

        Args:
            message: Error message.
            retryable: Whether another attempt could succeed.
        """
        super().__init__(message)
        self.retryable = retryable


class ArchiveNotFoundError(FetchError):
    """The remote archive does not exist. Never retried."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Archive not found: {url}", retryable=False)
        self.url = url


class RetriesExhaustedError(FetchError):
    """Every allowed attempt failed with a transient error."""

    def __init__(self, url: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"Download of {url} failed after {attempts} attempt(s): {last_error}",
            retryable=False,
        )
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class ExtractError(StrandError):
    """A downloaded archive could not be unpacked."""


class InstallError(StrandError):
    """Installation of a single plugin failed."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Failed to install {name}: {cause}")
        self.name = name
        self.cause = cause


class ConfigError(StrandError):
    """The configuration file is missing, unreadable or invalid."""

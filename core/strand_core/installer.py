"""Single-plugin installation.

The installer drives one plugin through its state machine::

    Downloading -> (Retry)* -> Extracting -> Installed
          \\                        \\
           +-------> Error <--------+

and reports every transition on the plugin's channel. Exactly one terminal
state (Installed or Error) is sent per installation.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from .errors import InstallError
from .extractor import extract_archive_async
from .fetcher import fetch_with_retry
from .models import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_TIMEOUT_SECONDS,
    Downloading,
    Error,
    Extracting,
    Installed,
    InstallResult,
    InstallState,
    InstallStateKind,
    Plugin,
    Retry,
    StrandConfig,
)
from .resolver import resolve_url

if TYPE_CHECKING:
    from pathlib import Path

    import aiohttp

    from .interfaces import InstallChannel

logger = structlog.get_logger(__name__)


class PluginInstaller:
    """Downloads and unpacks plugins, reporting progress on a channel."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the installer.

        Args:
            max_attempts: Download attempts per plugin.
            retry_backoff: Fixed delay between download attempts in seconds.
            timeout_seconds: Timeout of a single download attempt.
            session: HTTP session shared by downloads. None = one per download.
        """
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self.timeout_seconds = timeout_seconds
        self.session = session
        self._log = logger.bind(component="installer")

    @classmethod
    def from_config(
        cls, config: StrandConfig, session: aiohttp.ClientSession | None = None
    ) -> PluginInstaller:
        """Create an installer from the configuration's tunables."""
        return cls(
            max_attempts=config.max_attempts,
            retry_backoff=config.retry_backoff,
            timeout_seconds=config.timeout_seconds,
            session=session,
        )

    async def install(
        self,
        plugin: Plugin,
        target_dir: Path,
        channel: InstallChannel,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> InstallResult:
        """Install one plugin into ``target_dir``.

        Args:
            plugin: The plugin to install.
            target_dir: Directory the archive is unpacked into.
            channel: Receives every state transition of this plugin.
            session: HTTP session for this install. Falls back to ``self.session``.

        Returns:
            InstallResult describing the successful installation.

        Raises:
            InstallError: If any step failed. Error has already been sent.
        """
        name = plugin.name
        log = self._log.bind(plugin=name)
        start = time.monotonic()

        async def emit(status: InstallStateKind) -> None:
            await channel.put(InstallState(status=status, name=name))

        async def on_retry(state: Retry) -> None:
            log.info("retrying_download", attempt=state.attempt, delay=self.retry_backoff)
            await emit(state)

        await emit(Downloading())
        try:
            url = resolve_url(plugin)
            log.debug("downloading", url=url)
            data = await fetch_with_retry(
                url,
                max_attempts=self.max_attempts,
                backoff=self.retry_backoff,
                progress_sink=on_retry,
                session=session or self.session,
                timeout_seconds=self.timeout_seconds,
            )

            await emit(Extracting())
            await extract_archive_async(data, target_dir)
        except Exception as e:
            log.warning("install_failed", error=str(e), error_type=type(e).__name__)
            await emit(Error(cause=str(e)))
            raise InstallError(name, e) from e

        await emit(Installed())
        duration = time.monotonic() - start
        log.info("plugin_installed", duration_seconds=round(duration, 3))
        return InstallResult(
            name=name,
            plugin=plugin,
            success=True,
            duration_seconds=duration,
        )

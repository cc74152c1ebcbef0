"""Concurrent installation of a batch of plugins.

Each plugin gets its own channel, one installer task producing states and one
renderer task consuming them. All pairs run concurrently and are all awaited;
a failing plugin never cancels or delays the others.

Aggregate policy: the returned InstallSummary is not ``ok`` if any plugin
failed. The orchestrator never terminates the process; callers decide what a
failed summary means for their exit status.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiohttp
import structlog

from .errors import InstallError
from .installer import PluginInstaller
from .interfaces import LoggingRenderer, ProgressRenderer
from .models import InstallResult, InstallState, InstallSummary, Plugin, StrandConfig

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = structlog.get_logger(__name__)

# Capacity 1: the installer waits briefly if the renderer has not yet drained
# the previous state.
CHANNEL_CAPACITY = 1


class InstallOrchestrator:
    """Installs plugins concurrently with one progress renderer per plugin."""

    def __init__(
        self,
        installer: PluginInstaller | None = None,
        renderer: ProgressRenderer | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            installer: Installer used for every plugin. Defaults are used if omitted.
            renderer: Progress renderer. Logs transitions if omitted.
        """
        self.installer = installer or PluginInstaller()
        self.renderer = renderer or LoggingRenderer()
        self._log = logger.bind(component="orchestrator")

    @classmethod
    def from_config(
        cls, config: StrandConfig, renderer: ProgressRenderer | None = None
    ) -> InstallOrchestrator:
        """Create an orchestrator using the configuration's tunables."""
        return cls(installer=PluginInstaller.from_config(config), renderer=renderer)

    async def install_all(self, plugins: Sequence[Plugin], target_dir: Path) -> InstallSummary:
        """Install every plugin into ``target_dir`` concurrently.

        Args:
            plugins: Plugins to install.
            target_dir: Existing, writable plugin directory.

        Returns:
            InstallSummary with one result per plugin, in input order.
        """
        start_time = datetime.now(tz=UTC)
        self._log.info("install_started", plugin_count=len(plugins), target_dir=str(target_dir))

        # Created per batch unless the installer was given a session.
        session = self.installer.session or aiohttp.ClientSession()
        try:
            async with self.renderer:
                results = await asyncio.gather(
                    *(self._install_one(plugin, target_dir, session) for plugin in plugins)
                )
        finally:
            if session is not self.installer.session:
                await session.close()

        summary = InstallSummary(
            start_time=start_time,
            end_time=datetime.now(tz=UTC),
            results=list(results),
        )
        self._log.info(
            "install_completed",
            total_plugins=summary.total_plugins,
            installed=summary.installed_plugins,
            failed=summary.failed_plugins,
        )
        return summary

    async def _install_one(
        self, plugin: Plugin, target_dir: Path, session: aiohttp.ClientSession
    ) -> InstallResult:
        """Run the installer/renderer pair for a single plugin."""
        channel: asyncio.Queue[InstallState] = asyncio.Queue(maxsize=CHANNEL_CAPACITY)
        start = time.monotonic()

        install_task = asyncio.create_task(
            self.installer.install(plugin, target_dir, channel, session=session),
            name=f"install-{plugin.name}",
        )
        render_task = asyncio.create_task(
            self._render(plugin.name, channel, install_task),
            name=f"render-{plugin.name}",
        )
        install_outcome, _ = await asyncio.gather(
            install_task, render_task, return_exceptions=True
        )

        if isinstance(install_outcome, InstallResult):
            return install_outcome

        if not isinstance(install_outcome, InstallError):
            self._log.error("installer_crashed", plugin=plugin.name, exc_info=install_outcome)
        cause = install_outcome.cause if isinstance(install_outcome, InstallError) else install_outcome
        return InstallResult(
            name=plugin.name,
            plugin=plugin,
            success=False,
            error_message=str(cause),
            duration_seconds=time.monotonic() - start,
        )

    async def _render(
        self,
        name: str,
        channel: asyncio.Queue[InstallState],
        install_task: asyncio.Task[InstallResult],
    ) -> InstallState | None:
        """Render one plugin, draining its channel even if the renderer fails.

        Returns:
            The terminal state, or None if the renderer failed after the
            installer had already finished.
        """
        try:
            return await self.renderer.render(name, channel)
        except Exception:
            self._log.exception("renderer_failed", plugin=name)

        # The installer must never block on a channel nobody reads. Once it
        # has finished, whatever it put is already in the channel.
        while not (install_task.done() and channel.empty()):
            try:
                state = channel.get_nowait()
            except asyncio.QueueEmpty:
                await asyncio.sleep(self.renderer.tick_interval)
                continue
            if state.is_terminal:
                return state
        return None

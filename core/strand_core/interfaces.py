"""Core interfaces for strand.

This module defines the abstract progress renderer that consumes a plugin's
install state channel, plus a structlog-backed implementation used when no
terminal display is available.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeAlias

import structlog

from .models import Error, InstallState, Retry

if TYPE_CHECKING:
    from types import TracebackType

logger = structlog.get_logger(__name__)

InstallChannel: TypeAlias = "asyncio.Queue[InstallState]"

DEFAULT_TICK_INTERVAL = 0.05


def describe_state(state: InstallState) -> str:
    """Return a short human-readable description of an install state."""
    match state.status:
        case Retry(attempt=attempt):
            return f"Retrying (attempt {attempt})"
        case Error(cause=cause):
            return f"Error: {cause}"
        case status:
            return type(status).__name__


class ProgressRenderer(ABC):
    """Abstract base class for per-plugin progress renderers.

    A renderer is entered once per batch; ``render`` is then called once per
    plugin, concurrently, each call owning the receiving end of one plugin's
    channel.
    """

    def __init__(self, tick_interval: float = DEFAULT_TICK_INTERVAL) -> None:
        self.tick_interval = tick_interval

    async def __aenter__(self) -> ProgressRenderer:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    async def render(self, name: str, channel: InstallChannel) -> InstallState:
        """Consume ``channel`` until a terminal state arrives.

        The channel is polled every ``tick_interval`` seconds, so an empty
        channel never blocks the rest of the batch and ``on_tick`` can drive
        animation between real transitions.

        Returns:
            The terminal state.
        """
        handle = self.on_start(name)
        while True:
            try:
                state = channel.get_nowait()
            except asyncio.QueueEmpty:
                self.on_tick(handle)
                await asyncio.sleep(self.tick_interval)
                continue

            channel.task_done()
            if state.is_terminal:
                self.on_finish(handle, state)
                return state
            self.on_state(handle, state)

    @abstractmethod
    def on_start(self, name: str) -> Any:
        """Called once before the first state of ``name`` is read.

        Returns:
            A handle identifying this plugin's display, passed to the other hooks.
        """
        ...

    @abstractmethod
    def on_state(self, handle: Any, state: InstallState) -> None:
        """Called for every non-terminal state."""
        ...

    @abstractmethod
    def on_finish(self, handle: Any, state: InstallState) -> None:
        """Called once with the terminal state."""
        ...

    def on_tick(self, handle: Any) -> None:  # noqa: B027 - optional hook
        """Called on every poll that found the channel empty."""


class LoggingRenderer(ProgressRenderer):
    """Renderer that reports transitions through structlog.

    Used when stdout is not a terminal, and in tests. Every state seen is
    also recorded in ``history`` keyed by plugin name.
    """

    def __init__(self, tick_interval: float = DEFAULT_TICK_INTERVAL) -> None:
        super().__init__(tick_interval)
        self.history: dict[str, list[InstallState]] = {}
        self._log = logger.bind(component="logging_renderer")

    def on_start(self, name: str) -> str:
        self.history.setdefault(name, [])
        return name

    def on_state(self, handle: str, state: InstallState) -> None:
        self.history[handle].append(state)
        self._log.info("install_state", plugin=state.name, state=describe_state(state))

    def on_finish(self, handle: str, state: InstallState) -> None:
        self.history[handle].append(state)
        fields: dict[str, Any] = {"plugin": state.name}
        if isinstance(state.status, Error):
            self._log.error("plugin_failed", cause=state.status.cause, **fields)
        else:
            self._log.info("plugin_installed", **fields)

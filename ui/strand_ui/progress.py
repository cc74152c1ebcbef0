"""Progress display component using Rich."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

from strand_core.interfaces import DEFAULT_TICK_INTERVAL, ProgressRenderer
from strand_core.models import Downloading, Error, Extracting, Installed, Retry

if TYPE_CHECKING:
    from types import TracebackType

    from strand_core.models import InstallState


def format_state(name: str, state: InstallState | None) -> str:
    """Return the Rich markup line shown for a plugin in ``state``.

    ``None`` means no state has been received yet.
    """
    label = escape(name)
    match None if state is None else state.status:
        case None | Downloading():
            return f"[bold cyan]Installing[/bold cyan] {label}"
        case Retry(attempt=attempt):
            return f"[bold yellow]Retrying[/bold yellow] {label} [dim](attempt {attempt})[/dim]"
        case Extracting():
            return f"[bold cyan]Extracting[/bold cyan] {label}"
        case Installed():
            return f"[green]✓[/green] [bold green]Installed[/bold green] {label}"
        case Error(cause=cause):
            return f"[red]✗[/red] [bold red]Error[/bold red] {label}: [red]{escape(cause)}[/red]"
        case status:
            raise AssertionError(f"unhandled install state: {status!r}")


class RichProgressRenderer(ProgressRenderer):
    """Real-time progress display for plugin installation.

    Shows one spinner line per plugin. Lines are redrawn on every renderer
    tick, so spinners keep moving while a plugin waits on the network, and
    each line is left showing its terminal state once the plugin finishes.
    """

    def __init__(
        self,
        console: Console | None = None,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
    ) -> None:
        """Initialize the progress display.

        Args:
            console: Optional Rich console to use. Creates one if not provided.
            tick_interval: Seconds between channel polls and redraws.
        """
        super().__init__(tick_interval)
        self.console = console or Console()
        self._progress = Progress(
            SpinnerColumn(finished_text=" "),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
            auto_refresh=False,
        )

    async def __aenter__(self) -> RichProgressRenderer:
        """Start the live display."""
        self._progress.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Draw the final state of every line and stop the live display."""
        self._progress.refresh()
        self._progress.stop()

    def on_start(self, name: str) -> TaskID:
        task_id = self._progress.add_task(format_state(name, None), total=None)
        self._progress.refresh()
        return task_id

    def on_state(self, handle: TaskID, state: InstallState) -> None:
        self._progress.update(handle, description=format_state(state.name, state))
        self._progress.refresh()

    def on_finish(self, handle: TaskID, state: InstallState) -> None:
        # total=1, completed=1 stops the spinner and the elapsed clock.
        self._progress.update(
            handle,
            description=format_state(state.name, state),
            total=1,
            completed=1,
        )
        self._progress.refresh()

    def on_tick(self, handle: Any) -> None:
        self._progress.refresh()

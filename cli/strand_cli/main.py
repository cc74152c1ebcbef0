"""Main CLI entry point for strand.

This module defines the Typer application and main commands. Running
``strand`` with no subcommand empties the plugin directory and installs every
plugin listed in the config file.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from strand_core import (
    ConfigError,
    ConfigManager,
    InstallOrchestrator,
    LoggingRenderer,
    PluginParseError,
    ResolveError,
    StrandConfig,
    ensure_empty_dir,
    get_default_config_path,
    parse_plugin,
    resolve_url,
)
from strand_ui import RichProgressRenderer

from . import __version__

if TYPE_CHECKING:
    from strand_core import InstallSummary, Plugin, ProgressRenderer

app = typer.Typer(
    name="strand",
    help="Fast plugin installer - download plugins from GitHub, GitLab, Bitbucket or any archive URL.",
    invoke_without_command=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def configure_logging(log_level: str) -> None:
    """Configure structlog and standard logging with the specified level.

    Log lines go to stderr so they never interleave with the progress
    display on stdout.

    Args:
        log_level: Log level string (debug, info, warning, error).
    """
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    level = level_map.get(log_level.lower(), logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        level=level,
        stream=sys.stderr,
        force=True,
    )

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]strand[/bold blue] version {__version__}")
        raise typer.Exit()


def config_location_callback(value: bool) -> None:
    """Print the config file location and exit without loading it."""
    if value:
        console.print(str(get_default_config_path()), highlight=False, soft_wrap=True)
        raise typer.Exit()


def _load_config(ctx: typer.Context) -> StrandConfig:
    """Load the configuration selected by the global options."""
    config_path: Path | None = ctx.obj["config_path"]
    try:
        config = ConfigManager(config_path).load()
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from e

    if not ctx.obj["verbose"]:
        configure_logging(config.log_level.value)
    return config


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to the config file. Defaults to the XDG config location.",
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output."),
    ] = False,
    config_location: Annotated[
        bool | None,
        typer.Option(
            "--config-location",
            help="Print the config file location and exit.",
            callback=config_location_callback,
            is_eager=True,
        ),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Strand: install plugins listed in the config file.

    With no subcommand, the plugin directory is emptied and every configured
    plugin is installed fresh.
    """
    ctx.obj = {"config_path": config_path, "verbose": verbose}
    configure_logging("debug" if verbose else "warning")

    if ctx.invoked_subcommand is not None:
        return

    config = _load_config(ctx)
    try:
        ensure_empty_dir(config.plugin_dir)
    except OSError as e:
        err_console.print(f"[red]Error:[/red] could not prepare {config.plugin_dir}: {e}")
        raise typer.Exit(code=1) from e

    _run_install(config, config.plugins)


@app.command()
def install(
    ctx: typer.Context,
    specs: Annotated[
        list[str],
        typer.Argument(
            metavar="PLUGINS...",
            help="Plugin specs, e.g. user/repo, gitlab@user/repo:v1 or an archive URL.",
        ),
    ],
) -> None:
    """Install specific plugins without adding them to the config file.

    The plugin directory is not emptied first.
    """
    plugins: list[Plugin] = []
    for spec in specs:
        try:
            plugins.append(parse_plugin(spec))
        except PluginParseError as e:
            raise typer.BadParameter(str(e), param_hint="PLUGINS") from e

    config = _load_config(ctx)
    config.plugin_dir.mkdir(parents=True, exist_ok=True)
    _run_install(config, plugins)


@app.command("list")
def list_plugins(ctx: typer.Context) -> None:
    """Show the configured plugins and the archive URL each resolves to."""
    config = _load_config(ctx)

    table = Table(title=f"Plugins ({config.plugin_dir})", show_header=True)
    table.add_column("Plugin", style="cyan")
    table.add_column("Source")
    table.add_column("Ref")
    table.add_column("URL", overflow="fold")

    for plugin in config.plugins:
        try:
            url = escape(resolve_url(plugin))
        except ResolveError as e:
            url = f"[red]{escape(str(e))}[/red]"
        if plugin.kind == "git":
            table.add_row(
                escape(plugin.name), plugin.provider.value, escape(plugin.git_ref), url
            )
        else:
            table.add_row(escape(plugin.name), "archive", "[dim]-[/dim]", url)

    console.print(table)


@app.command()
def init(
    ctx: typer.Context,
    plugin_dir: Annotated[
        Path,
        typer.Option("--plugin-dir", "-d", help="Directory plugins are installed into."),
    ] = Path("~/.vim/pack/strand/start"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Create a starter config file."""
    manager = ConfigManager(ctx.obj["config_path"])
    if manager.config_path.exists() and not force:
        err_console.print(
            f"[yellow]Config already exists:[/yellow] {manager.config_path} (use --force)"
        )
        raise typer.Exit(code=1)

    manager.save(StrandConfig(plugin_dir=plugin_dir))
    console.print(f"[green]Created[/green] {manager.config_path}", highlight=False)


def _run_install(config: StrandConfig, plugins: list[Plugin]) -> None:
    """Install ``plugins`` with a live display and exit non-zero on failure."""
    if not plugins:
        console.print("[yellow]No plugins to install[/yellow]")
        return

    renderer: ProgressRenderer = (
        RichProgressRenderer(console) if console.is_terminal else LoggingRenderer()
    )
    orchestrator = InstallOrchestrator.from_config(config, renderer=renderer)
    summary = asyncio.run(orchestrator.install_all(plugins, config.plugin_dir))
    # Without the live display nothing else reports the plugins that installed.
    _print_summary(summary, show_installed=not console.is_terminal)

    if not summary.ok:
        raise typer.Exit(code=1)


def _print_summary(summary: InstallSummary, show_installed: bool = False) -> None:
    """Print totals, and the failures if there were any.

    With ``show_installed`` every installed plugin gets a line too.
    """
    console.print()
    if show_installed:
        for result in summary.results:
            if result.success:
                console.print(f"  [green]✓[/green] {escape(result.name)}", highlight=False)
    console.print(
        f"[bold]Total:[/bold] {summary.total_plugins} plugins  "
        f"[green]Installed:[/green] {summary.installed_plugins}  "
        f"[red]Failed:[/red] {summary.failed_plugins}"
    )
    for result in summary.failures:
        message = escape(result.error_message or "Failed")
        console.print(f"  [red]✗[/red] {escape(result.name)}: {message}", highlight=False)


if __name__ == "__main__":
    sys.exit(app())

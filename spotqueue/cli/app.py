"""
Defines the command-line interface for the application using Typer.
Links are read one per line from a file or stdin until a 'done' line.
"""

import asyncio
import logging
import os
import sys
from collections.abc import Iterator
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from spotqueue import __version__
from spotqueue.api.auth import SpotifyAuthenticator
from spotqueue.api.client import LibrespotSession
from spotqueue.core.download_driver import DownloadDriver
from spotqueue.core.expander import CollectionExpander
from spotqueue.core.queue_builder import QueueBuilder
from spotqueue.exceptions import ConfigurationError, InputStreamError, SpotQueueError
from spotqueue.media.sinks import create_sink
from spotqueue.models.config import DownloadConfig
from spotqueue.models.stats import DownloadStats
from spotqueue.storage.config_manager import ConfigManager

from .formatters import (
    print_config,
    print_queue_table,
    print_summary_panel,
    print_validation_table,
)
from .progress_manager import ProgressManager

console = Console()

# librespot logs under its own unrooted names; keep those at WARNING.
logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("spotqueue")
log.setLevel(logging.INFO)

app = typer.Typer(
    name="spotqueue",
    help=(
        "Download tracks and episodes one at a time from a list of links. Use"
        " 'spotqueue <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "spotqueue"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """spotqueue CLI"""
    if version:
        console.print(f"[bold]spotqueue[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("spotqueue").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]spotqueue init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        print_config(CONFIG_FILE, config_manager.read_raw())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    username: str = typer.Argument(..., help="Account username or email."),
    password: str = typer.Argument(..., help="Account password. It is not saved."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing credentials without asking."
    ),
):
    """Log in once and store reusable credentials for later runs."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm(
            "Configuration file already exists. Overwrite the credentials?"
        )
    ):
        raise typer.Abort()

    config_manager = ConfigManager(CONFIG_FILE)
    credentials_path = config_manager.default_credentials_path

    async def _init_async():
        authenticator = SpotifyAuthenticator()
        session = await authenticator.authenticate_with_credentials(
            username, password, store_credentials_at=credentials_path
        )
        session.close()

    asyncio.run(_init_async())

    settings = {}
    if CONFIG_FILE.is_file():
        try:
            settings = config_manager.read_raw()
        except ConfigurationError:
            log.warning("[yellow]Existing configuration is unreadable; replacing it.[/]")
    settings.update(
        {"username": username, "stored_credentials": str(credentials_path)}
    )
    config_manager.save_new_config(settings)
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print(
        "Ready to download! Try: [cyan]echo 'spotify:track:<id>' | spotqueue download"
        "[/cyan]"
    )


def _iter_lines(input_path: Path | None) -> Iterator[str]:
    """Yields input lines lazily from a file or stdin."""
    if input_path is None:
        if sys.stdin.isatty():
            console.print(
                "[dim]Reading links from stdin, one per line. Finish with 'done' or"
                " Ctrl-D.[/dim]"
            )
        yield from sys.stdin
        return

    try:
        handle = open(input_path, encoding="utf-8")
    except OSError as e:
        raise InputStreamError(f"Could not open input file '{input_path}': {e}") from e
    with handle:
        yield from handle


async def _open_session(config: DownloadConfig) -> LibrespotSession:
    authenticator = SpotifyAuthenticator(quality=config.quality)
    if config.uses_stored_credentials:
        return await authenticator.authenticate_with_stored(
            Path(config.stored_credentials).expanduser()
        )
    return await authenticator.authenticate_with_credentials(
        config.username, config.password
    )


@app.command(name="download")
def download_command(
    input_path: Path | None = typer.Option(  # noqa: B008
        None,
        "--input",
        "-i",
        help="Read links from this file instead of stdin.",
        dir_okay=False,
    ),
    helper: str | None = typer.Option(
        None,
        "--helper",
        "-x",
        help="Pipe audio into this program instead of writing files.",
    ),
    output_dir: str | None = typer.Option(
        None, "--output-dir", "-o", help="Directory for downloaded .ogg files."
    ),
    quality: str | None = typer.Option(
        None, "--quality", "-q", help="Audio quality: normal, high or very_high."
    ),
    skip_existing: bool | None = typer.Option(
        None,
        "--skip-existing/--overwrite",
        help="Skip items whose output file already exists.",
    ),
    username: str | None = typer.Option(
        None, "--username", "-u", help="Log in with this username."
    ),
    password: str | None = typer.Option(
        None,
        "--password",
        "-p",
        envvar="SPOTQUEUE_PASSWORD",
        help="Password for --username.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Resolve and list the queue without downloading any audio.",
    ),
):
    """Download every track and episode linked in the input, in order."""
    cli_options = {
        key: value
        for key, value in {
            "helper": helper,
            "output_dir": output_dir,
            "quality": quality,
            "skip_existing": skip_existing,
            "username": username,
            "password": password,
        }.items()
        if value is not None
    }
    cli_options["dry_run"] = dry_run

    async def _download_async():
        session = None
        stats = DownloadStats(dry_run=dry_run)
        progress_stats = None

        try:
            config_manager = ConfigManager(CONFIG_FILE)
            config = config_manager.load_config(cli_options)

            session = await _open_session(config)
            builder = QueueBuilder(CollectionExpander(session))
            queue = await builder.build(_iter_lines(input_path))

            if config.dry_run:
                stats.items_total = len(queue)
                print_queue_table(queue)
            else:
                sink = create_sink(config)
                console.print("[bold cyan]🎵 Starting download session...[/bold cyan]")
                async with ProgressManager(console=console) as progress_manager:
                    driver = DownloadDriver(session, sink, stats, progress_manager)
                    await driver.run(queue)
                    progress_stats = progress_manager.get_statistics()

        finally:
            if session:
                session.close()

        print_summary_panel(stats, stats.elapsed, progress_stats)

    asyncio.run(_download_async())


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config = config_manager.load_config(require_file=True)
        print_validation_table(config)
    except SpotQueueError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def diagnose():
    """Diagnose common configuration and connectivity issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    issues_found = False
    if CONFIG_FILE.is_file():
        console.print(f"[green]✓[/] Config file exists at: [dim]{CONFIG_FILE}[/dim]")
    else:
        console.print("[red]✗ Config file not found.[/] Run [cyan]spotqueue init[/cyan].")
        raise typer.Exit(code=1)
    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config = config_manager.load_config(require_file=True)
        console.print("[green]✓[/] Configuration file is valid and can be loaded.")
        if config.uses_stored_credentials:
            console.print("[green]✓[/] Stored credentials are present.")
        if config.helper_path:
            console.print(f"[green]✓[/] Helper is executable: [dim]{config.helper_path}[/dim]")
    except SpotQueueError as e:
        console.print(f"[red]✗ Configuration validation failed: {e}[/red]")
        issues_found = True
    console.print("\n[dim]Testing connectivity to the streaming service...[/dim]")

    async def test_connection():
        import aiohttp

        try:
            timeout = aiohttp.ClientTimeout(total=10)
            async with (
                aiohttp.ClientSession(timeout=timeout) as session,
                session.get("https://open.spotify.com") as resp,
            ):
                if resp.status == 200:
                    console.print("[green]✓[/] Successfully connected.")
                    return True
                console.print(f"[red]✗ Could not connect (Status: {resp.status}).[/red]")
                return False
        except Exception as e:
            console.print(f"[red]✗ Connection test failed: {e}[/red]")
            return False

    if not asyncio.run(test_connection()):
        issues_found = True
    console.print()
    if not issues_found:
        console.print("[bold green]✓ All checks passed! Your setup looks good.[/bold green]\n")
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)

"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from spotqueue.models.config import DownloadConfig, get_quality_info
from spotqueue.models.reference import DownloadQueue
from spotqueue.models.stats import DownloadStats
from spotqueue.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Check the username and password you passed.",
            "• Stored credentials may have expired. Run `spotqueue init` again.",
            "• Free accounts cannot stream audio.",
        ],
        "ConfigurationError": [
            "• Run `spotqueue validate` to see which setting is rejected.",
            "• Run `spotqueue init --force` to write a fresh configuration.",
        ],
        "InputStreamError": [
            "• Make sure the input file exists and is UTF-8 text.",
            "• Pipe one link per line, ending with a `done` line or end of input.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The service might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key == "password":
            value = "[hidden]"
        elif value == "":
            value = "[dim](not set)[/dim]"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: DownloadConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    if config.uses_stored_credentials:
        auth_method = f"Stored credentials [dim]({config.stored_credentials})[/dim]"
    else:
        auth_method = f"Username/Password [dim]({config.username})[/dim]"
    quality_info = get_quality_info(config.quality)

    table.add_row("Auth Method:", f"[green]{auth_method}[/green]")
    table.add_row(
        "Quality:",
        f"[{quality_info['color']}]{quality_info['name']}[/{quality_info['color']}]",
    )
    if config.helper_path:
        table.add_row("Sink:", f"Helper [dim]{config.helper_path}[/dim]")
    else:
        table.add_row("Sink:", f"Files in [dim]{config.output_dir}[/dim]")
    table.add_row(
        "Skip Existing:", "✓ Enabled" if config.skip_existing else "✗ Disabled"
    )
    table.add_row("Chunk Size:", format_size(config.chunk_size))

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_queue_table(queue: DownloadQueue):
    """Lists the resolved queue, in download order."""
    console = Console()
    if not queue:
        console.print("[yellow]The queue is empty.[/yellow]")
        return

    table = Table(title=f"Download Queue ({len(queue)} items)", box=box.ROUNDED)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Kind", style="magenta")
    table.add_column("ID", style="cyan")
    table.add_column("URI", style="dim")
    for position, ref in enumerate(queue, start=1):
        table.add_row(str(position), ref.kind.value, escape(ref.id), escape(ref.uri))
    console.print(table)


def print_summary_panel(
    stats: DownloadStats, duration_s: float, progress_stats: dict | None = None
):
    """Displays the final summary of the download session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Queued:", str(stats.items_total))
    stats_table.add_row("✓ Downloaded:", f"[bold green]{stats.items_done}[/bold green]")
    if stats.items_skipped > 0:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.items_skipped} (exists)[/yellow]"
        )
    if stats.items_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.items_failed}[/bold red]")

    stats_table.add_row("", "")

    stats_table.add_row("Total Size:", f"[cyan]{format_size(stats.bytes_written)}[/cyan]")
    avg_speed = stats.bytes_written / duration_s if duration_s > 0 else 0
    stats_table.add_row(
        "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if progress_stats and progress_stats.get("start_time"):
        stats_table.add_row(
            "Started:", f"[dim]{progress_stats['start_time']:%Y-%m-%d %H:%M:%S}[/dim]"
        )

    if stats.dry_run:
        title = "🔍 [bold]Dry Run Summary[/bold]"
        border_color = "yellow"
    elif stats.items_failed:
        title = "🎵 [bold]Finished with Failures[/bold]"
        border_color = "yellow"
    else:
        title = "🎵 [bold]Download Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()

"""
Main entry point for the spotqueue application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import asyncio
import logging
import os
import sys

import click
import typer
from rich.console import Console

from spotqueue.cli.app import app
from spotqueue.cli.formatters import format_error_with_suggestions
from spotqueue.exceptions import SpotQueueError


def main() -> None:
    """Runs the CLI and maps cancellation and fatal errors to exit codes."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("spotqueue")
    console = Console()

    # Non-standalone mode lets errors and Ctrl-C reach the handlers below
    # instead of being turned into exit codes by Click.
    try:
        exit_code = app(prog_name="spotqueue", standalone_mode=False)
    except (typer.Abort, KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except SpotQueueError as e:
        console.print()
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print()
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)

    sys.exit(exit_code or 0)


if __name__ == "__main__":
    main()

"""
Shared console and error reporting helpers for commands.
"""

import functools
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from safrobox.commands.errors import NodeError, SafroboxError

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through rich; debug output only when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def report_error(error: SafroboxError) -> None:
    console.print(f"[red]✗ {error.message}[/red]")
    hint = getattr(error, "hint", None)
    if isinstance(error, NodeError) and hint:
        console.print(f"[blue]{hint}[/blue]")


def exit_on_error(func):
    """Print a SafroboxError raised by a command and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SafroboxError as e:
            report_error(e)
            sys.exit(1)

    return wrapper


def runtime_from_context():
    """Fetch the Runtime stored on the click context by the CLI group."""
    from safrobox.commands.settings import Runtime

    return click.get_current_context().ensure_object(Runtime)

"""
Utilities specific to CLI functionality.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from typer import Context, Typer

if TYPE_CHECKING:
    from .main import RootContext


console = Console(highlight=False)

rich_handler = RichHandler(
    console=console,
    rich_tracebacks=True,
    show_level=True,
    show_time=False,
    show_path=False,
)
rich_handler.setFormatter(logging.Formatter("%(message)s"))

logger = logging.getLogger("blog-cli")
logger.setLevel(logging.INFO)
logger.addHandler(rich_handler)
logger.propagate = False

STATUS_ICONS = {"draft": "[ ]", "published": "[x]", "archived": "[-]"}

ACCESS_STYLES = {
    "admin": "red",
    "reader": "yellow",
    "public": "dark_orange",
}


class MainTyper(Typer):
    """
    Typer app with preconfigured settings.
    """

    def __init__(self, name: str, *, help: str):
        return super().__init__(
            name=name,
            help=help,
            rich_markup_mode="markdown",
            no_args_is_help=True,
            add_completion=False,
        )


def get_root_context(ctx: Context) -> RootContext:
    from .main import RootContext

    root_context = ctx.obj
    assert isinstance(root_context, RootContext)
    return root_context


def print_title(title: str):
    console.print(f"\n[bold cyan]{escape(title)}[/bold cyan]\n")


def print_dim(message: str):
    console.print(f"[dim]{escape(message)}[/dim]")

"""
Commands operating on local posts only.
"""
from __future__ import annotations

import datetime
import os
import subprocess
from pathlib import Path

from rich.markup import escape
from typer import Argument, Context

from ...core import generate_slug, new_document_text, title_from_slug
from ...core.local import sort_by_access_level
from ..shell import open_editor, open_folder
from ._utils import (
    ACCESS_STYLES,
    STATUS_ICONS,
    console,
    get_root_context,
    logger,
    print_dim,
    print_title,
)


def new(
    ctx: Context,
    slug: str = Argument(help="Slug or title of new post, e.g. 'my-post'"),
):
    """
    Create a new blog post
    """
    root_context = get_root_context(ctx)
    local = root_context.local

    normalized_slug = generate_slug(slug)

    if not normalized_slug:
        logger.error(f"Invalid slug: '{slug}'")
        return

    path = local.path_for(normalized_slug)

    if path.exists():
        logger.error(f"File already exists: {path.name}")
        return

    title = title_from_slug(slug)
    today = datetime.date.today()

    local.root.mkdir(parents=True, exist_ok=True)
    path.write_text(
        new_document_text(normalized_slug, title, today), encoding="utf-8"
    )
    logger.info(f"Created: {path}")

    editor = os.environ.get("EDITOR")
    if editor:
        print_dim(f"Opening in {editor}...")
        _open_editor(path, editor)


def edit(
    ctx: Context,
    slug: str = Argument(help="Slug of post to edit"),
):
    """
    Open blog in $EDITOR
    """
    local = get_root_context(ctx).local
    path = local.path_for(slug)

    if not path.is_file():
        logger.error(f"Blog not found: {path.stem}")
        print_dim("Run 'blog list' to see available blogs")
        return

    _open_editor(path, None)


def list_posts(ctx: Context):
    """
    List all local blogs
    """
    local = get_root_context(ctx).local
    documents = sort_by_access_level([d.document for d in local.load_all()])

    if not len(documents):
        logger.warning("No blogs found")
        print_dim("Create one with: blog new my-first-post")
        return

    print_title("Local Blogs")

    for document in documents:
        icon = STATUS_ICONS.get(document.status, "[ ]")
        style = ACCESS_STYLES.get(document.access_level, "dim")

        console.print(
            f"{escape(icon)} [cyan]{escape(document.slug)}[/cyan] "
            f"[{style}]{escape(f'[{document.access_level}]')}[/{style}]"
        )
        console.print(f"    [dim]{escape(document.title or '')}[/dim]")

    print_dim(f"\nTotal: {len(documents)} blogs")


def open_dir(ctx: Context):
    """
    Open blogs folder in file manager
    """
    local = get_root_context(ctx).local
    local.root.mkdir(parents=True, exist_ok=True)

    try:
        open_folder(local.root)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"Failed to open folder: {e}")
        return

    logger.info(f"Opened: {local.root}")


def _open_editor(path: Path, editor: str | None):
    try:
        open_editor(path, editor=editor)
    except OSError as e:
        logger.error(f"Failed to open editor: {e}")

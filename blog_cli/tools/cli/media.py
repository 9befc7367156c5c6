"""
Image upload command.
"""
from __future__ import annotations

from pathlib import Path

from rich.markup import escape
from typer import Argument, Context, Option

from ..media import (
    CloudinaryCredentials,
    MediaError,
    markdown_snippet,
    transform_url,
    upload_image,
)
from ..shell import copy_to_clipboard
from ._utils import console, get_root_context, logger, print_dim


def img(
    ctx: Context,
    file: Path = Argument(help="Image file to upload"),
    width: int
    | None = Option(
        None,
        "-w",
        "--width",
        help="Resize width in pixels, e.g. 800",
        min=1,
    ),
    name: str
    | None = Option(
        None,
        "-n",
        "--name",
        help="Custom public id/name",
    ),
    alt: str
    | None = Option(
        None,
        "-a",
        "--alt",
        help="Alt text for markdown snippet",
    ),
):
    """
    Upload image to Cloudinary, copy URL to clipboard
    """
    config = get_root_context(ctx).config

    if not config.cloudinary_url:
        logger.error("Cloudinary not configured. Run: blog setup")
        return

    path = file.resolve()

    if not path.is_file():
        logger.error(f"File not found: {path}")
        return

    logger.info(f"Uploading: {path.name}...")

    try:
        credentials = CloudinaryCredentials.from_url(config.cloudinary_url)
        url = upload_image(
            path, credentials, folder=config.folder, public_id=name
        )
    except MediaError as e:
        logger.error(f"Upload failed: {e}")
        return

    if width:
        url = transform_url(url, width)

    if copy_to_clipboard(url):
        logger.info("Copied to clipboard!")

    console.print()
    console.print(f"[cyan]{escape(url)}[/cyan]")
    console.print()

    print_dim(f"Markdown: {markdown_snippet(url, alt or path.stem)}")

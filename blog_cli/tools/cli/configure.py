"""
Configuration commands.
"""
from __future__ import annotations

import typer
from typer import Context

from ...core import RemoteError
from ..config import DEFAULT_CLOUDINARY_FOLDER, ConfigError
from ._utils import console, get_root_context, logger, print_title


def setup(ctx: Context):
    """
    Configure database and Cloudinary
    """
    root_context = get_root_context(ctx)
    config = root_context.config.model_copy()

    print_title("Blog CLI Setup")
    console.print("Enter your database connection details:\n")

    config.database_url = _prompt("DATABASE_URL", config.database_url)
    config.ca_cert = _prompt("CA_CERT (base64)", config.ca_cert)

    console.print()
    config.cloudinary_url = _prompt("CLOUDINARY_URL", config.cloudinary_url)
    config.cloudinary_folder = _prompt(
        "CLOUDINARY_FOLDER",
        config.cloudinary_folder,
        shown=config.cloudinary_folder or DEFAULT_CLOUDINARY_FOLDER,
    )

    if not config.database_url:
        logger.error("DATABASE_URL is required")
        return

    config.dump(root_context.config_file)
    root_context._config = config
    logger.info(f"Config saved to {root_context.config_file}")

    # test connection
    logger.info("Testing database connection...")
    try:
        with config.create_store(logger=logger) as store:
            count = store.count()
    except (ConfigError, RemoteError) as e:
        logger.error(f"Connection failed: {e}")
        return

    logger.info(f"Connected! Found {count} blogs in database")


def show_config(ctx: Context):
    """
    Show current configuration
    """
    root_context = get_root_context(ctx)

    if not root_context.config_file.exists():
        logger.warning("No config found. Run: blog setup")
        return

    config = root_context.config

    print_title("Current Configuration")
    console.print(f"Config file: {root_context.config_file}")
    console.print(f"Blogs dir:   {root_context.blogs_dir}")
    console.print(f"Database:    {config.masked_database_url()}")
    console.print(f"CA Cert:     {'set' if config.ca_cert else 'not set'}")
    console.print(
        f"Cloudinary:  {'set' if config.cloudinary_url else 'not set'} (folder: {config.folder})"
    )


def _prompt(
    label: str, current: str | None, *, shown: str | None = None
) -> str | None:
    """
    Prompt for value, keeping current value if input is empty. Secrets are
    masked unless a value to show is given.
    """
    hint = shown or ("***" if current else "none")
    value = typer.prompt(
        f"{label} [{hint}]", default="", show_default=False
    ).strip()
    return value or current

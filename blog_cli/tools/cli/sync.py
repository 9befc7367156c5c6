"""
Commands reconciling local posts with the database.
"""
from __future__ import annotations

from rich.markup import escape
from typer import Argument, Context, Option

from ...core import NotFoundError, reconcile
from ._utils import console, get_root_context, logger, print_dim, print_title


def status(ctx: Context):
    """
    Compare local vs database
    """
    root_context = get_root_context(ctx)

    with root_context.open_store() as store:
        report = reconcile.status(root_context.local, store)

    diff = report.diff

    print_title("Blog Status")

    if len(diff.local_only):
        console.print("[green]Local only (push to create):[/green]")
        for slug in diff.local_only:
            console.print(f"  + {escape(slug)}")
        console.print()

    if len(diff.remote_only):
        console.print("[yellow]Database only (pull to fetch):[/yellow]")
        for slug in diff.remote_only:
            access_level = report.remote_documents[slug].access_level
            access = f" [{access_level}]" if access_level != "public" else ""
            console.print(f"  - {escape(slug + access)}")
        console.print()

    if len(diff.synced):
        console.print("[cyan]Synced:[/cyan]")
        for slug in diff.synced:
            console.print(f"  = {escape(slug)}")
        console.print()

    print_dim(
        f"Total: {report.local_count} local, {report.remote_count} in database"
    )


def push(
    ctx: Context,
    slug: str
    | None = Argument(None, help="Slug or file name of post to push"),
    dry_run: bool = Option(
        False,
        "-n",
        "--dry-run",
        help="Preview without making changes",
    ),
):
    """
    Push blogs to database
    """
    root_context = get_root_context(ctx)
    local = root_context.local

    with root_context.open_store() as store:
        print_title("Pushing Blogs")

        try:
            reconcile.push(
                local, store, target=slug, dry_run=dry_run, logger=logger
            )
        except NotFoundError as e:
            logger.error(str(e))


def pull(
    ctx: Context,
    slug: str | None = Argument(None, help="Slug of post to pull"),
    force: bool = Option(
        False,
        "-f",
        "--force",
        help="Overwrite existing files",
    ),
):
    """
    Pull blogs from database
    """
    root_context = get_root_context(ctx)
    local = root_context.local

    with root_context.open_store() as store:
        print_title("Pulling Blogs")

        try:
            reconcile.pull(
                local, store, target=slug, force=force, logger=logger
            )
        except NotFoundError as e:
            logger.error(str(e))


def rm(
    ctx: Context,
    slug: str = Argument(help="Slug of post to delete"),
):
    """
    Delete blog (local + database)
    """
    root_context = get_root_context(ctx)
    local = root_context.local

    path = local.path_for(slug)
    slug = path.stem

    if local.delete(slug):
        logger.info(f"Deleted local: {path.name}")

    with root_context.open_store() as store:
        try:
            store.delete(slug)
        except NotFoundError:
            return

        logger.info(f"Deleted from DB: {slug}")

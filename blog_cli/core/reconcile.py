"""
Reconciliation of local posts with the remote store.

Documents are matched by slug only: no content or timestamp comparison is
performed, so "synced" means the slug exists on both sides.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from logging import Logger
from pathlib import Path
from typing import Iterable

from .document import SLUG_PATTERN, Document
from .exceptions import (
    ConstraintViolationError,
    DocumentError,
    NotFoundError,
)
from .local import DOCUMENT_SUFFIX, LocalStore
from .remote import NodeStore

__all__ = [
    "Diff",
    "PushStats",
    "PullStats",
    "StatusReport",
    "compute_diff",
    "resolve_published_at",
    "push",
    "pull",
    "status",
]


@dataclass(kw_only=True)
class Diff:
    """
    Slugs partitioned by where they exist.
    """

    local_only: list[str] = field(default_factory=list)
    """
    Slugs only present locally, i.e. candidates to push.
    """

    remote_only: list[str] = field(default_factory=list)
    """
    Slugs only present remotely, i.e. candidates to pull.
    """

    synced: list[str] = field(default_factory=list)
    """
    Slugs present in both places.
    """


@dataclass(kw_only=True)
class PushStats:
    created: int = 0
    updated: int = 0
    errors: int = 0


@dataclass(kw_only=True)
class PullStats:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass(kw_only=True)
class StatusReport:
    diff: Diff
    local_count: int
    remote_count: int
    remote_documents: dict[str, Document] = field(default_factory=dict)
    """
    Remote documents by slug, for annotating output.
    """


def compute_diff(
    local_docs: Iterable[Document], remote_docs: Iterable[Document]
) -> Diff:
    """
    Partition documents by slug membership. Local ordering is kept for
    local-only and synced slugs, remote ordering for remote-only slugs.
    """

    local_slugs = list(dict.fromkeys(d.slug for d in local_docs))
    remote_slugs = list(dict.fromkeys(d.slug for d in remote_docs))

    local_set = set(local_slugs)
    remote_set = set(remote_slugs)

    return Diff(
        local_only=[s for s in local_slugs if s not in remote_set],
        remote_only=[s for s in remote_slugs if s not in local_set],
        synced=[s for s in local_slugs if s in remote_set],
    )


def resolve_published_at(
    document: Document,
    existing: Document | None,
    *,
    now: datetime.datetime,
) -> datetime.datetime | None:
    """
    Get publish date to write: the document's own date if set, otherwise
    `now` if newly published, otherwise whatever the remote row had.
    """
    if document.published_at:
        return document.published_at

    existing_published_at = existing.published_at if existing else None

    if document.status == "published" and not existing_published_at:
        return now

    return existing_published_at


def push(
    local: LocalStore,
    remote: NodeStore,
    *,
    target: str | None = None,
    dry_run: bool = False,
    now: datetime.datetime | None = None,
    logger: Logger | None = None,
) -> PushStats:
    """
    Create or update remote documents from local files. Invalid documents are
    logged and counted without blocking the rest.

    :param target: Only push the post with this slug or file name
    :param dry_run: Only log what would be written
    :param now: Timestamp for newly published documents, defaults to current time
    :raises NotFoundError: If `target` doesn't match any local file
    """

    logger = logger or logging.getLogger()
    now = now or datetime.datetime.now(datetime.timezone.utc)
    stats = PushStats()

    paths = sorted(local.list_files())

    if target:
        target = target.removesuffix(DOCUMENT_SUFFIX)
        paths = [p for p in paths if _matches_target(local, p, target)]

        if not len(paths):
            raise NotFoundError(target)

    if not len(paths):
        logger.warning("No blogs to push")
        return stats

    if dry_run:
        logger.warning("DRY RUN - no changes will be made")

    for path in paths:
        try:
            document = local.load(path)
            document.check_writable()
        except DocumentError as e:
            for error in e.errors:
                logger.error(f"{error} ({path.name})")
            stats.errors += 1
            continue

        existing = remote.find_by_slug(document.slug)

        payload = document.model_copy(
            update={
                "published_at": resolve_published_at(
                    document, existing, now=now
                )
            }
        )

        if dry_run:
            logger.info(
                f"Would {'update' if existing else 'create'}: {document.slug}"
            )
        else:
            try:
                if existing:
                    remote.update(document.slug, payload)
                else:
                    remote.create(payload)
            except (ConstraintViolationError, NotFoundError) as e:
                # row changed since lookup
                logger.error(str(e))
                stats.errors += 1
                continue

            logger.info(
                f"{'Updated' if existing else 'Created'}: {document.slug}"
            )

        if existing:
            stats.updated += 1
        else:
            stats.created += 1

    _log_summary(
        logger,
        created=stats.created,
        updated=stats.updated,
        errors=stats.errors,
    )

    return stats


def pull(
    local: LocalStore,
    remote: NodeStore,
    *,
    target: str | None = None,
    force: bool = False,
    logger: Logger | None = None,
) -> PullStats:
    """
    Write remote documents to local files. Existing files are never
    overwritten unless `force` is passed.

    :param target: Only pull the post with this slug
    :param force: Overwrite existing files
    :raises NotFoundError: If `target` doesn't exist remotely
    """

    logger = logger or logging.getLogger()
    stats = PullStats()

    if target:
        target = target.removesuffix(DOCUMENT_SUFFIX)

    documents = remote.find_all(slug=target or None)

    if not len(documents):
        if target:
            raise NotFoundError(target, remote=True)

        logger.warning("No blogs in database")
        return stats

    for document in documents:
        # never derive a path from an unsafe slug
        if not SLUG_PATTERN.fullmatch(document.slug):
            logger.error(f"Invalid slug in database: {document.slug!r}")
            stats.errors += 1
            continue

        path = local.path_for(document.slug)
        exists = path.exists()

        if exists and not force:
            logger.warning(
                f"Skipped (exists): {document.slug} - use --force to overwrite"
            )
            stats.skipped += 1
            continue

        local.write(document)
        logger.info(f"{'Updated' if exists else 'Created'}: {path.name}")

        if exists:
            stats.updated += 1
        else:
            stats.created += 1

    _log_summary(
        logger,
        created=stats.created,
        updated=stats.updated,
        skipped=stats.skipped,
        errors=stats.errors,
    )

    return stats


def status(local: LocalStore, remote: NodeStore) -> StatusReport:
    """
    Compare local files with remote documents.
    """

    local_docs = [d.document for d in local.load_all()]
    remote_docs = remote.find_all()

    diff = compute_diff(local_docs, remote_docs)

    return StatusReport(
        diff=diff,
        local_count=len({d.slug for d in local_docs}),
        remote_count=len(remote_docs),
        remote_documents={d.slug: d for d in remote_docs},
    )


def _matches_target(local: LocalStore, path: Path, target: str) -> bool:
    """
    Check if file matches target by name, else by its slug.
    """
    if path.name.removesuffix(DOCUMENT_SUFFIX) == target:
        return True

    try:
        return local.load(path).slug == target
    except DocumentError:
        return False


def _log_summary(logger: Logger, **counts: int):
    for name, count in counts.items():
        if not count:
            continue

        message = f"{name.capitalize()}: {count}"

        if name == "errors":
            logger.error(message)
        elif name == "skipped":
            logger.warning(message)
        else:
            logger.info(message)

"""
Remote store of documents, backed by the `Node` table.
"""
from __future__ import annotations

import base64
import binascii
import datetime
import json
import logging
import os
import re
import tempfile
import uuid
from abc import ABC, abstractmethod
from logging import Logger
from typing import Any

import psycopg2
import psycopg2.errors
import psycopg2.extras
from psycopg2.extensions import connection as PgConnection
from pydantic import ValidationError

from .document import NODE_TYPE, Document
from .exceptions import ConstraintViolationError, NotFoundError, RemoteError

__all__ = [
    "NodeStore",
    "PostgresNodeStore",
]

TABLE = '"Node"'

COLUMNS = (
    '"slug", "title", "content", "status", "accessLevel", "metadata", '
    '"publishedAt"'
)

SSLMODE_PATTERN = re.compile(r"[?&]sslmode=[^&]+")


class NodeStore(ABC):
    """
    CRUD access to blog documents. Use as a context manager to ensure the
    underlying connection is released:

    ```
    with PostgresNodeStore(url) as store:
        store.find_all()
    ```
    """

    _logger: Logger

    def __init__(self, *, logger: Logger | None = None):
        self._logger = logger or logging.getLogger()

    def __enter__(self):
        self._logger.debug(f"Entering context: {self}")
        return self

    def __exit__(self, exc_type, exc_val, traceback):
        if exc_type:
            self._logger.debug(f"Exiting context with error: {self}")
        else:
            self._logger.debug(f"Exiting context: {self}")

        self.close()

    @abstractmethod
    def find_by_slug(self, slug: str) -> Document | None:
        ...

    @abstractmethod
    def find_all(self, slug: str | None = None) -> list[Document]:
        """
        Get documents, newest first, optionally filtered by slug.
        """
        ...

    @abstractmethod
    def create(self, document: Document) -> Document:
        """
        Insert document.

        :raises ConstraintViolationError: If slug already exists
        """
        ...

    @abstractmethod
    def update(self, slug: str, document: Document) -> Document:
        """
        Update document with given slug.

        :raises NotFoundError: If slug doesn't exist
        """
        ...

    @abstractmethod
    def delete(self, slug: str):
        """
        Delete document with given slug.

        :raises NotFoundError: If slug doesn't exist
        """
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    def close(self):
        """
        Release any resources held by this store.
        """


class PostgresNodeStore(NodeStore):
    """
    Store using a single `psycopg2` connection, opened upon construction.
    """

    _conn: PgConnection | None
    _ca_file: str | None = None

    def __init__(
        self,
        database_url: str,
        *,
        ca_cert: str | None = None,
        logger: Logger | None = None,
    ):
        """
        :param database_url: PostgreSQL connection string
        :param ca_cert: Base64-encoded CA certificate; enables verified TLS
        :param logger: Logger to use, or `None` to use default logger
        """
        super().__init__(logger=logger)

        connect_kwargs: dict[str, Any] = {"dsn": database_url}

        if ca_cert:
            # verification settings from certificate take precedence
            connect_kwargs["dsn"] = _strip_sslmode(database_url)
            connect_kwargs["sslmode"] = "verify-full"
            connect_kwargs["sslrootcert"] = self._write_ca_file(ca_cert)

        try:
            self._conn = psycopg2.connect(**connect_kwargs)
        except psycopg2.Error as e:
            self._conn = None
            self._remove_ca_file()
            raise RemoteError(f"Failed to connect to database: {e}") from e

        self._logger.debug(f"Connected to database: {self}")

    def __repr__(self) -> str:
        if self._conn is None:
            return "PostgresNodeStore(closed)"

        params = self._conn.get_dsn_parameters()
        return f"PostgresNodeStore(host='{params.get('host')}', dbname='{params.get('dbname')}')"

    def find_by_slug(self, slug: str) -> Document | None:
        rows = self._execute(
            f"SELECT {COLUMNS} FROM {TABLE} WHERE type = %s AND slug = %s",
            (NODE_TYPE, slug),
        )
        return _to_document(rows[0]) if rows else None

    def find_all(self, slug: str | None = None) -> list[Document]:
        query = f"SELECT {COLUMNS} FROM {TABLE} WHERE type = %s"
        params: tuple[Any, ...] = (NODE_TYPE,)

        if slug is not None:
            query += " AND slug = %s"
            params += (slug,)

        query += ' ORDER BY "createdAt" DESC'

        return [_to_document(row) for row in self._execute(query, params)]

    def create(self, document: Document) -> Document:
        now = _now()
        rows = self._execute(
            f'INSERT INTO {TABLE} ("id", "type", {COLUMNS}, "createdAt", "updatedAt") '
            f"VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s) "
            f"RETURNING {COLUMNS}",
            (uuid.uuid4().hex, NODE_TYPE, *_to_params(document), now, now),
            slug=document.slug,
        )
        return _to_document(rows[0])

    def update(self, slug: str, document: Document) -> Document:
        rows = self._execute(
            f'UPDATE {TABLE} SET "slug" = %s, "title" = %s, "content" = %s, '
            f'"status" = %s, "accessLevel" = %s, "metadata" = %s, '
            f'"publishedAt" = %s, "updatedAt" = %s '
            f"WHERE type = %s AND slug = %s RETURNING {COLUMNS}",
            (*_to_params(document), _now(), NODE_TYPE, slug),
            slug=document.slug,
        )

        if not rows:
            raise NotFoundError(slug, remote=True)

        return _to_document(rows[0])

    def delete(self, slug: str):
        rows = self._execute(
            f"DELETE FROM {TABLE} WHERE type = %s AND slug = %s RETURNING id",
            (NODE_TYPE, slug),
        )

        if not rows:
            raise NotFoundError(slug, remote=True)

    def count(self) -> int:
        rows = self._execute(
            f"SELECT COUNT(*) AS count FROM {TABLE} WHERE type = %s",
            (NODE_TYPE,),
        )
        return int(rows[0]["count"])

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._logger.debug("Closed database connection")

        self._remove_ca_file()

    def _execute(
        self,
        query: str,
        params: tuple[Any, ...],
        *,
        slug: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a single statement and commit it, returning any rows.
        """
        if self._conn is None:
            raise RemoteError("Database connection is closed")

        try:
            with self._conn.cursor(
                cursor_factory=psycopg2.extras.RealDictCursor
            ) as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall() if cursor.description else []
            self._conn.commit()
        except psycopg2.errors.UniqueViolation as e:
            self._rollback()
            assert slug is not None
            raise ConstraintViolationError(slug) from e
        except psycopg2.Error as e:
            self._rollback()
            raise RemoteError(str(e).strip()) from e

        return [dict(row) for row in rows]

    def _rollback(self):
        """
        Roll back failed statement unless the connection is already gone.
        """
        assert self._conn is not None

        if self._conn.closed:
            return

        try:
            self._conn.rollback()
        except psycopg2.Error as e:
            self._logger.debug(f"Rollback failed: {e}")

    def _write_ca_file(self, ca_cert: str) -> str:
        try:
            pem = base64.b64decode("".join(ca_cert.split()), validate=True)
        except binascii.Error as e:
            raise RemoteError(
                f"Invalid CA certificate, expected base64: {e}. Run: blog setup"
            ) from e

        fd, path = tempfile.mkstemp(prefix="blog-ca-", suffix=".pem")
        with os.fdopen(fd, "wb") as fh:
            fh.write(pem)

        self._ca_file = path
        return path

    def _remove_ca_file(self):
        if self._ca_file is not None:
            os.unlink(self._ca_file)
            self._ca_file = None


def _strip_sslmode(database_url: str) -> str:
    url = SSLMODE_PATTERN.sub("", database_url)

    # if the first parameter was removed, promote the next one
    if "?" not in url and "&" in url:
        url = url.replace("&", "?", 1)

    return url


def _to_params(document: Document) -> tuple[Any, ...]:
    return (
        document.slug,
        document.title,
        document.body,
        document.status,
        document.access_level,
        psycopg2.extras.Json(document.metadata, dumps=_dumps),
        _to_utc(document.published_at),
    )


def _to_document(row: dict[str, Any]) -> Document:
    try:
        return Document(
            slug=row["slug"],
            title=row["title"],
            body=row["content"] or "",
            status=row["status"],
            access_level=row["accessLevel"],
            published_at=row["publishedAt"],
            metadata=row["metadata"],
        )
    except ValidationError as e:
        slug = row.get("slug")
        raise RemoteError(f"Invalid row for slug '{slug}': {e}") from e


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _now() -> datetime.datetime:
    return _to_utc(datetime.datetime.now(datetime.timezone.utc))


def _to_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """
    Convert to naive UTC, matching `timestamp` columns written by Prisma.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)

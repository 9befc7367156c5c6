"""
Test PostgreSQL store against a fake connection.
"""

import base64
import datetime
import os
from typing import Any

import psycopg2
import psycopg2.errors
import psycopg2.extras
from pytest import MonkeyPatch, fixture, raises

from blog_cli import (
    ConstraintViolationError,
    Document,
    NotFoundError,
    PostgresNodeStore,
    RemoteError,
)

UTC = datetime.timezone.utc

ROW = {
    "slug": "hello",
    "title": "Hello",
    "content": "Body",
    "status": "published",
    "accessLevel": "reader",
    "metadata": {"tags": ["a"], "series": "s1"},
    "publishedAt": datetime.datetime(2024, 1, 2, 3, 4, 5),
}


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn
        self.description = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass

    def execute(self, query: str, params: tuple[Any, ...]):
        self.conn.queries.append((query, params))

        if self.conn.error is not None:
            raise self.conn.error

        self.description = [("column",)]

    def fetchall(self) -> list[dict[str, Any]]:
        return self.conn.rows


class FakeConnection:
    def __init__(self):
        self.queries: list[tuple[str, tuple[Any, ...]]] = []
        self.rows: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.rollback_error: Exception | None = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, cursor_factory=None) -> FakeCursor:
        assert cursor_factory is psycopg2.extras.RealDictCursor
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

        if self.rollback_error is not None:
            raise self.rollback_error

    def close(self):
        self.closed = True

    def get_dsn_parameters(self) -> dict[str, str]:
        return {"host": "localhost", "dbname": "blog"}


@fixture
def connect(monkeypatch: MonkeyPatch) -> list[dict[str, Any]]:
    """
    Replace connection with a fake one, returning connect() arguments.
    """
    calls: list[dict[str, Any]] = []

    def fake_connect(**kwargs) -> FakeConnection:
        # record whether certificate was written at the time of connecting
        if "sslrootcert" in kwargs:
            with open(kwargs["sslrootcert"], "rb") as fh:
                kwargs["pem"] = fh.read()

        calls.append(kwargs)
        return FakeConnection()

    monkeypatch.setattr(psycopg2, "connect", fake_connect)
    return calls


def _conn(store: PostgresNodeStore) -> FakeConnection:
    conn = store._conn
    assert isinstance(conn, FakeConnection)
    return conn


def test_find(connect):
    with PostgresNodeStore("postgresql://localhost/blog") as store:
        conn = _conn(store)
        conn.rows = [ROW]

        documents = store.find_all()

        assert len(documents) == 1
        document = documents[0]

        assert document.slug == "hello"
        assert document.body == "Body"
        assert document.access_level == "reader"
        assert document.published_at == datetime.datetime(
            2024, 1, 2, 3, 4, 5, tzinfo=UTC
        )
        assert document.tags == ["a"]
        assert document.metadata["series"] == "s1"

        query, params = conn.queries[-1]
        assert query.endswith('ORDER BY "createdAt" DESC')
        assert params == ("blog",)

        store.find_all(slug="hello")
        assert conn.queries[-1][1] == ("blog", "hello")

        assert store.find_by_slug("hello") == document

        conn.rows = []
        assert store.find_by_slug("nope") is None

    assert connect == [{"dsn": "postgresql://localhost/blog"}]
    assert conn.closed


def test_create(connect):
    document = Document(
        slug="new-post",
        title="New",
        published_at=datetime.datetime(
            2024, 1, 2, 12, tzinfo=datetime.timezone(datetime.timedelta(hours=2))
        ),
        metadata={"tags": ["x"]},
    )

    with PostgresNodeStore("postgresql://localhost/blog") as store:
        conn = _conn(store)
        conn.rows = [{**ROW, "slug": "new-post"}]

        store.create(document)

        query, params = conn.queries[-1]

        assert query.startswith('INSERT INTO "Node"')
        assert len(params) == 11

        id_, type_, slug, title, content, status, access, metadata = params[:8]
        published_at, created_at, updated_at = params[8:]

        assert len(id_) == 32
        assert type_ == "blog"
        assert (slug, title, content, status, access) == (
            "new-post",
            "New",
            "",
            "draft",
            "public",
        )
        assert isinstance(metadata, psycopg2.extras.Json)
        assert metadata.adapted == {"description": "", "image": "", "tags": ["x"]}

        # timestamps are naive UTC
        assert published_at == datetime.datetime(2024, 1, 2, 10)
        assert created_at == updated_at
        assert created_at.tzinfo is None

        assert conn.commits == 1


def test_update_delete(connect):
    with PostgresNodeStore("postgresql://localhost/blog") as store:
        conn = _conn(store)

        conn.rows = [ROW]
        store.update("hello", Document(slug="hello", title="Hello"))

        query, params = conn.queries[-1]
        assert query.startswith('UPDATE "Node"')
        assert params[-2:] == ("blog", "hello")

        store.delete("hello")
        assert conn.queries[-1][0].startswith('DELETE FROM "Node"')

        conn.rows = []

        with raises(NotFoundError):
            store.update("gone", Document(slug="gone", title="Gone"))

        with raises(NotFoundError):
            store.delete("gone")


def test_errors(connect):
    with PostgresNodeStore("postgresql://localhost/blog") as store:
        conn = _conn(store)

        conn.error = psycopg2.errors.UniqueViolation("duplicate key")
        with raises(ConstraintViolationError):
            store.create(Document(slug="dup", title="Dup"))

        conn.error = psycopg2.OperationalError("server closed the connection")
        with raises(RemoteError, match="server closed"):
            store.count()

        assert conn.rollbacks == 2
        assert conn.commits == 0

        # invalid row
        conn.error = None
        conn.rows = [{**ROW, "status": "deleted"}]
        with raises(RemoteError, match="hello"):
            store.find_all()

    # closed connection
    with raises(RemoteError):
        store.count()


def test_count(connect):
    with PostgresNodeStore("postgresql://localhost/blog") as store:
        _conn(store).rows = [{"count": 3}]
        assert store.count() == 3


def test_ca_cert(connect):
    pem = b"-----BEGIN CERTIFICATE-----\nabc\n-----END CERTIFICATE-----\n"

    store = PostgresNodeStore(
        "postgresql://db.example.com/blog?sslmode=require&application_name=x",
        ca_cert=base64.b64encode(pem).decode(),
    )

    call = connect[0]
    ca_file = call["sslrootcert"]

    assert call["dsn"] == "postgresql://db.example.com/blog?application_name=x"
    assert call["sslmode"] == "verify-full"
    assert call["pem"] == pem
    assert os.path.exists(ca_file)

    store.close()
    assert not os.path.exists(ca_file)


def test_connect_error(monkeypatch: MonkeyPatch):
    def fail(**kwargs):
        raise psycopg2.OperationalError("could not connect")

    monkeypatch.setattr(psycopg2, "connect", fail)

    with raises(RemoteError, match="could not connect"):
        PostgresNodeStore("postgresql://localhost/blog")


def test_lost_connection(connect):
    """
    Failure to roll back doesn't mask the original error.
    """
    with PostgresNodeStore("postgresql://localhost/blog") as store:
        conn = _conn(store)

        conn.error = psycopg2.OperationalError("server closed the connection")
        conn.rollback_error = psycopg2.InterfaceError(
            "connection already closed"
        )

        with raises(RemoteError, match="server closed the connection"):
            store.find_all()

        assert conn.rollbacks == 1

        # rollback skipped once connection is known to be closed
        conn.closed = True

        with raises(RemoteError, match="server closed the connection"):
            store.count()

        assert conn.rollbacks == 1


def test_ca_cert_invalid(connect):
    with raises(RemoteError, match="blog setup"):
        PostgresNodeStore(
            "postgresql://db.example.com/blog", ca_cert="not base64!!!"
        )

    # never got as far as connecting
    assert connect == []


def test_ca_cert_wrapped(connect):
    """
    Certificates pasted with line breaks are accepted.
    """
    pem = b"-----BEGIN CERTIFICATE-----\n" + b"x" * 100 + b"\n"
    encoded = base64.b64encode(pem).decode()
    wrapped = "\n".join(encoded[i : i + 64] for i in range(0, len(encoded), 64))

    store = PostgresNodeStore("postgresql://localhost/blog", ca_cert=wrapped)

    assert connect[0]["pem"] == pem
    store.close()

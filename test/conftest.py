import datetime
import logging
from pathlib import Path
from typing import Callable

from pytest import fixture

from blog_cli import (
    ConstraintViolationError,
    Document,
    LocalStore,
    NodeStore,
    NotFoundError,
)

logging.basicConfig(level=logging.WARNING)

NOW = datetime.datetime(2025, 3, 1, 12, 30, tzinfo=datetime.timezone.utc)
"""
Fixed timestamp for newly published documents.
"""


class MemoryNodeStore(NodeStore):
    """
    In-memory store mirroring the semantics of `PostgresNodeStore`.
    """

    documents: dict[str, Document]
    created: list[str]
    updated: list[str]
    deleted: list[str]
    closed: bool

    def __init__(self, documents: list[Document] | None = None):
        super().__init__()
        self.documents = {}
        self.created = []
        self.updated = []
        self.deleted = []
        self.closed = False

        # oldest first, so find_all() returns the last one first
        self.seed(*(documents or []))

    def seed(self, *documents: Document):
        """
        Add documents without recording them as created.
        """
        for document in documents:
            self.documents[document.slug] = document

    def find_by_slug(self, slug: str) -> Document | None:
        return self.documents.get(slug)

    def find_all(self, slug: str | None = None) -> list[Document]:
        documents = list(reversed(self.documents.values()))
        if slug is not None:
            documents = [d for d in documents if d.slug == slug]
        return documents

    def create(self, document: Document) -> Document:
        if document.slug in self.documents:
            raise ConstraintViolationError(document.slug)
        self.documents[document.slug] = document
        self.created.append(document.slug)
        return document

    def update(self, slug: str, document: Document) -> Document:
        if slug not in self.documents:
            raise NotFoundError(slug, remote=True)
        del self.documents[slug]
        self.documents[document.slug] = document
        self.updated.append(slug)
        return document

    def delete(self, slug: str):
        if slug not in self.documents:
            raise NotFoundError(slug, remote=True)
        del self.documents[slug]
        self.deleted.append(slug)

    def count(self) -> int:
        return len(self.documents)

    def close(self):
        self.closed = True


@fixture
def now() -> datetime.datetime:
    return NOW


@fixture
def blogs_dir(tmp_path: Path) -> Path:
    return tmp_path / "blogs"


@fixture
def local(blogs_dir: Path) -> LocalStore:
    return LocalStore(blogs_dir)


@fixture
def remote() -> MemoryNodeStore:
    return MemoryNodeStore()


@fixture
def write_post(blogs_dir: Path) -> Callable[..., Path]:
    """
    Get function to write a post file with the given front matter.
    """

    def write(
        name: str,
        *,
        title: str | None = "Test post",
        slug: str | None = None,
        status: str | None = None,
        extra: str = "",
        body: str = "Hello, world!",
    ) -> Path:
        lines = []
        if title is not None:
            lines.append(f'title: "{title}"')
        if slug is not None:
            lines.append(f'slug: "{slug}"')
        if status is not None:
            lines.append(f"status: {status}")

        front_matter = "\n".join(lines) + extra

        blogs_dir.mkdir(parents=True, exist_ok=True)
        path = blogs_dir / name
        path.write_text(f"---\n{front_matter}\n---\n\n{body}\n")
        return path

    return write


@fixture
def make_document() -> Callable[..., Document]:
    def make(slug: str, **kwargs) -> Document:
        kwargs.setdefault("title", slug.replace("-", " ").title())
        return Document(slug=slug, **kwargs)

    return make

"""
Local folder of markdown posts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from logging import Logger
from pathlib import Path

from .codec import decode, encode
from .document import ACCESS_LEVEL_ORDER, Document
from .exceptions import DocumentError

__all__ = [
    "DOCUMENT_SUFFIX",
    "README_NAME",
    "LocalDocument",
    "LocalStore",
    "sort_by_access_level",
]

DOCUMENT_SUFFIX = ".md"

README_NAME = "README.md"
"""
Filename reserved for notes about the folder itself; never synced.
"""


@dataclass(kw_only=True)
class LocalDocument:
    """
    Document along with the file it was loaded from.
    """

    path: Path
    document: Document


class LocalStore:
    """
    Folder of posts, one `<slug>.md` file per post. Files starting with `_`
    or `.` are treated as private drafts and ignored.
    """

    root: Path
    _logger: Logger

    def __init__(self, root: Path, *, logger: Logger | None = None):
        self.root = root
        self._logger = logger or logging.getLogger()

    def __repr__(self) -> str:
        return f"LocalStore('{self.root}')"

    def list_files(self) -> list[Path]:
        """
        Get post files, creating the folder if it doesn't exist.
        """
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            return []

        return [
            path
            for path in self.root.iterdir()
            if path.is_file() and _is_document_name(path.name)
        ]

    def path_for(self, slug: str) -> Path:
        """
        Map slug to file path; accepts a filename with `.md` suffix as well.
        """
        name = slug.removesuffix(DOCUMENT_SUFFIX)
        return self.root / f"{name}{DOCUMENT_SUFFIX}"

    def exists(self, slug: str) -> bool:
        return self.path_for(slug).is_file()

    def load(self, path: Path) -> Document:
        """
        Load document from file, defaulting slug to the file's base name.
        """
        return decode(
            path.read_text(encoding="utf-8"),
            default_slug=path.name.removesuffix(DOCUMENT_SUFFIX),
        )

    def load_all(self) -> list[LocalDocument]:
        """
        Load all documents, skipping any which fail to parse.
        """
        documents: list[LocalDocument] = []

        for path in self.list_files():
            try:
                document = self.load(path)
            except DocumentError as e:
                self._logger.warning(f"Skipping '{path.name}': {e}")
                continue

            documents.append(LocalDocument(path=path, document=document))

        return documents

    def write(self, document: Document) -> Path:
        """
        Write document to its file, overwriting any existing file.
        """
        self.root.mkdir(parents=True, exist_ok=True)

        path = self.path_for(document.slug)
        path.write_text(encode(document), encoding="utf-8")

        return path

    def delete(self, slug: str) -> bool:
        """
        Delete file for this slug, returning whether it existed.
        """
        path = self.path_for(slug)

        if not path.is_file():
            return False

        path.unlink()
        return True


def sort_by_access_level(documents: list[Document]) -> list[Document]:
    """
    Sort documents public first, then reader, then admin.
    """
    return sorted(
        documents,
        key=lambda d: ACCESS_LEVEL_ORDER.get(
            d.access_level, len(ACCESS_LEVEL_ORDER)
        ),
    )


def _is_document_name(name: str) -> bool:
    return (
        name.endswith(DOCUMENT_SUFFIX)
        and not name.startswith(("_", "."))
        and name != README_NAME
    )

"""
Document model shared by the local and remote stores.
"""
from __future__ import annotations

import datetime
import re
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .exceptions import DocumentError

__all__ = [
    "Document",
    "Status",
    "AccessLevel",
    "NODE_TYPE",
    "SLUG_PATTERN",
    "ACCESS_LEVEL_ORDER",
    "generate_slug",
    "title_from_slug",
]

NODE_TYPE = "blog"
"""
Value of the `type` column for nodes tracked by this tool.
"""

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
"""
Slugs must match this before being written to the remote store.
"""

ACCESS_LEVEL_ORDER: dict[str, int] = {"public": 0, "reader": 1, "admin": 2}
"""
Listing order of access levels; unknown levels sort last.
"""

WELL_KNOWN_METADATA = ("description", "image", "tags")

Status = Literal["draft", "published", "archived"]
AccessLevel = Literal["public", "reader", "admin"]


class Document(BaseModel):
    """
    A blog post, either parsed from a local file or read from the `Node`
    table. Identity is given by `slug` alone.
    """

    slug: str
    title: str | None = None
    body: str = ""
    status: Status = "draft"
    access_level: AccessLevel = Field(
        "public",
        validation_alias=AliasChoices("access_level", "accessLevel"),
        serialization_alias="accessLevel",
    )
    published_at: datetime.datetime | None = Field(
        None,
        validation_alias=AliasChoices("published_at", "publishedAt"),
        serialization_alias="publishedAt",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict, validate_default=True
    )
    """
    Open mapping holding `description`, `image`, `tags` and any extra front
    matter keys, in insertion order.
    """

    @field_validator("published_at", mode="before")
    @classmethod
    def validate_published_at(cls, value: Any) -> Any:
        return normalize_datetime(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def validate_metadata(cls, value: Any) -> Any:
        if value is None:
            value = {}

        if not isinstance(value, dict):
            # let pydantic handle type error
            return value

        # well-known keys first, extra keys after them in original order
        tags = value.get("tags")
        metadata: dict[str, Any] = {
            "description": value.get("description") or "",
            "image": value.get("image") or "",
            "tags": tags if isinstance(tags, list) else [],
        }
        metadata.update(
            (k, v) for k, v in value.items() if k not in WELL_KNOWN_METADATA
        )

        return metadata

    @property
    def description(self) -> str:
        return self.metadata.get("description") or ""

    @property
    def image(self) -> str:
        return self.metadata.get("image") or ""

    @property
    def tags(self) -> list[Any]:
        tags = self.metadata.get("tags")
        return tags if isinstance(tags, list) else []

    def check_writable(self):
        """
        Ensure this document may be written to the remote store.
        """
        errors: list[str] = []

        if not self.title or not self.slug:
            errors.append(f"Missing title/slug: {self.slug or '<none>'}")
        elif not SLUG_PATTERN.fullmatch(self.slug):
            errors.append(f"Invalid slug: {self.slug}")

        if len(errors):
            raise DocumentError(errors)


def normalize_datetime(value: Any) -> Any:
    """
    Coerce dates and ISO strings to timezone-aware datetimes. Dates map to
    midnight UTC and naive datetimes are assumed to be UTC.
    """
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = datetime.datetime.fromisoformat(value)
        except ValueError:
            # let pydantic report it
            return value

    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value

    if isinstance(value, datetime.date):
        return datetime.datetime(
            value.year, value.month, value.day, tzinfo=datetime.timezone.utc
        )

    return value


def generate_slug(text: str) -> str:
    """
    Convert arbitrary text to a slug, e.g. "My First Post!" -> "my-first-post".
    """
    slug = re.sub(r"[^a-z0-9\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()


def title_from_slug(slug: str) -> str:
    return re.sub(
        r"\b\w", lambda m: m.group(0).upper(), slug.replace("-", " ")
    )

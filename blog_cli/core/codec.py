"""
Conversion between markdown files with front matter and documents.

A file looks like:

```
---
title: "My post"
slug: "my-post"
status: "draft"
accessLevel: "public"
tags:
  - "python"
---

Body text...
```
"""
from __future__ import annotations

import datetime
import re
from typing import Any

import yaml
from pydantic import ValidationError

from .document import Document
from .exceptions import DocumentError

__all__ = [
    "FRONT_MATTER_DELIMITER",
    "decode",
    "encode",
    "split_front_matter",
    "new_document_text",
]

FRONT_MATTER_DELIMITER = "---"

KNOWN_KEYS = (
    "title",
    "slug",
    "status",
    "accessLevel",
    "publishedAt",
    "description",
    "image",
    "tags",
)
"""
Front matter keys mapped to fields; everything else lands in metadata.
"""

PLAIN_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
"""
Keys which may be written without quotes, provided yaml doesn't read them as
another type, e.g. `yes` or `null`.
"""


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """
    Split text into parsed front matter and body. Text without a leading
    delimiter has empty front matter.
    """

    lines = text.lstrip("\ufeff").splitlines(keepends=True)

    if not lines or lines[0].rstrip() != FRONT_MATTER_DELIMITER:
        return {}, text

    # find closing delimiter
    end = next(
        (
            i
            for i, line in enumerate(lines[1:], start=1)
            if line.rstrip() == FRONT_MATTER_DELIMITER
        ),
        None,
    )

    if end is None:
        raise DocumentError(["Front matter is missing closing delimiter"])

    block = "".join(lines[1:end])
    body = "".join(lines[end + 1 :])

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise DocumentError([f"Failed to parse front matter: {e}"])

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise DocumentError([f"Front matter is not a mapping: {data!r}"])

    return data, body


def decode(text: str, *, default_slug: str | None = None) -> Document:
    """
    Parse document from text, using `default_slug` if the front matter
    doesn't provide one.
    """

    data, body = split_front_matter(text)

    metadata: dict[str, Any] = {
        "description": data.get("description"),
        "image": data.get("image"),
        "tags": data.get("tags"),
    }

    # preserve unknown keys in file order
    for key, value in data.items():
        if key not in KNOWN_KEYS:
            metadata[str(key)] = value

    title = data.get("title")
    slug = data.get("slug") or default_slug or ""

    try:
        return Document(
            slug=str(slug),
            title=str(title) if title is not None else None,
            body=body.strip(),
            status=data.get("status") or "draft",
            access_level=data.get("accessLevel") or "public",
            published_at=data.get("publishedAt"),
            metadata=metadata,
        )
    except ValidationError as e:
        raise DocumentError(
            [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
        )


def encode(document: Document) -> str:
    """
    Render document as text with front matter.
    """

    extra = {
        k: v for k, v in document.metadata.items() if k not in KNOWN_KEYS
    }

    fields: dict[str, Any] = {
        "title": document.title,
        "slug": document.slug,
        "status": document.status,
        "accessLevel": document.access_level,
    }

    if document.published_at:
        fields["publishedAt"] = document.published_at.date().isoformat()
    if document.description:
        fields["description"] = document.description
    if document.image:
        fields["image"] = document.image
    if len(document.tags):
        fields["tags"] = document.tags

    fields.update(extra)

    lines: list[str] = []
    for key, value in fields.items():
        if isinstance(value, (list, tuple)):
            lines.append(f"{_format_key(key)}:")
            lines += [f"  - {_format_scalar(v)}" for v in value]
        else:
            lines.append(f"{_format_key(key)}: {_format_scalar(value)}")

    front_matter = "\n".join(lines)
    return f"{FRONT_MATTER_DELIMITER}\n{front_matter}\n{FRONT_MATTER_DELIMITER}\n\n{document.body}"


def new_document_text(slug: str, title: str, today: datetime.date) -> str:
    """
    Get text of a newly created post.
    """
    return f"""{FRONT_MATTER_DELIMITER}
title: {_quote(title)}
slug: {_quote(slug)}
status: draft
accessLevel: public
publishedAt: "{today.isoformat()}"
description: ""
image: ""
tags: []
{FRONT_MATTER_DELIMITER}

# {title}

Start writing here...
"""


def _format_key(key: Any) -> str:
    """
    Format a mapping key, quoting it unless it reads back as the same string.
    """
    key = str(key)

    if PLAIN_KEY_PATTERN.fullmatch(key) and yaml.safe_load(key) == key:
        return key

    return _quote(key)


def _format_scalar(value: Any) -> str:
    """
    Format a value as a single-line yaml scalar. Strings are always
    double-quoted; anything else uses yaml's own flow representation.
    """
    if isinstance(value, str):
        return _quote(value)

    text = yaml.safe_dump(
        value,
        default_flow_style=True,
        width=float("inf"),
        allow_unicode=True,
    )

    # plain scalars are followed by a document end marker
    return text.removesuffix("...\n").strip()


def _quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'

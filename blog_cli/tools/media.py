"""
Image upload to Cloudinary.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

import cloudinary.exceptions
import cloudinary.uploader

__all__ = [
    "IMAGE_SUFFIXES",
    "CloudinaryCredentials",
    "MediaError",
    "upload_image",
    "transform_url",
    "markdown_snippet",
]

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".avif"}

REQUEST_TIMEOUT = 60
"""
Timeout for upload request, in seconds.
"""


class MediaError(Exception):
    """
    Raised when an image can't be uploaded.
    """


@dataclass(frozen=True, kw_only=True)
class CloudinaryCredentials:
    cloud_name: str
    api_key: str
    api_secret: str

    @classmethod
    def from_url(cls, url: str) -> CloudinaryCredentials:
        """
        Parse credentials from `cloudinary://<api_key>:<api_secret>@<cloud_name>`.
        """
        parsed = urlparse(url.strip())

        if (
            parsed.scheme != "cloudinary"
            or not parsed.hostname
            or not parsed.username
            or not parsed.password
        ):
            raise MediaError(
                "Invalid Cloudinary URL, expected cloudinary://<api_key>:<api_secret>@<cloud_name>"
            )

        return cls(
            cloud_name=parsed.hostname,
            api_key=unquote(parsed.username),
            api_secret=unquote(parsed.password),
        )

    @property
    def options(self) -> dict[str, str]:
        """
        Credentials as per-call options, leaving the global config untouched.
        """
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }


def upload_image(
    path: Path,
    credentials: CloudinaryCredentials,
    *,
    folder: str,
    public_id: str | None = None,
) -> str:
    """
    Upload image and return its secure URL.
    """

    if path.suffix.lower() not in IMAGE_SUFFIXES:
        raise MediaError(f"Not an image file: {path.suffix}")

    options: dict[str, str | int] = {
        **credentials.options,
        "folder": folder,
        "resource_type": "image",
        "timeout": REQUEST_TIMEOUT,
    }

    if public_id:
        options["public_id"] = public_id

    try:
        result = cloudinary.uploader.upload(str(path), **options)
    except cloudinary.exceptions.Error as e:
        raise MediaError(str(e)) from e

    secure_url = result.get("secure_url")

    if not secure_url:
        raise MediaError("Response did not include secure_url")

    return secure_url


def transform_url(url: str, width: int) -> str:
    """
    Insert a resize transformation into a delivery URL.
    """
    return url.replace("/upload/", f"/upload/w_{width},q_auto/", 1)


def markdown_snippet(url: str, alt: str) -> str:
    return f"![{alt}]({url})"

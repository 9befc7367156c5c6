"""
Interface to configuration as persisted in .json file.
"""
from __future__ import annotations

import json
from logging import Logger
from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..core import PostgresNodeStore

__all__ = [
    "CONFIG_FILE",
    "BLOGS_DIR",
    "DEFAULT_CLOUDINARY_FOLDER",
    "Config",
    "ConfigError",
]

CONFIG_FILE = Path.home() / ".config" / "blog" / "config.json"
"""
Default location of configuration.
"""

BLOGS_DIR = Path.home() / "blogs"
"""
Default folder containing posts.
"""

DEFAULT_CLOUDINARY_FOLDER = "blog"


class ConfigError(Exception):
    """
    Raised when configuration is missing or invalid.
    """


class Config(BaseModel):
    """
    Encapsulates configuration for use in tools. Keys are camelCase on disk.
    """

    database_url: str | None = Field(
        None,
        validation_alias=AliasChoices("database_url", "databaseUrl"),
        serialization_alias="databaseUrl",
    )
    """
    PostgreSQL connection string.
    """

    ca_cert: str | None = Field(
        None,
        validation_alias=AliasChoices("ca_cert", "caCert"),
        serialization_alias="caCert",
    )
    """
    Base64-encoded CA certificate for TLS connections.
    """

    cloudinary_url: str | None = Field(
        None,
        validation_alias=AliasChoices("cloudinary_url", "cloudinaryUrl"),
        serialization_alias="cloudinaryUrl",
    )
    """
    Credentials of the form `cloudinary://<api_key>:<api_secret>@<cloud_name>`.
    """

    cloudinary_folder: str | None = Field(
        None,
        validation_alias=AliasChoices("cloudinary_folder", "cloudinaryFolder"),
        serialization_alias="cloudinaryFolder",
    )
    """
    Folder in which to upload images.
    """

    @classmethod
    def load(cls, file: Path) -> Config:
        """
        Load config from file, returning an empty config if it doesn't exist.
        """
        if not file.exists():
            return cls()

        try:
            model = json.loads(file.read_text(encoding="utf-8"))
            if not isinstance(model, dict):
                raise ValueError(f"expected a json object, got: {model!r}")
            return cls(**model)
        except (ValueError, ValidationError) as e:
            raise ConfigError(f"failed to load config file '{file}': {e}")

    def dump(self, file: Path):
        """
        Write config to file, omitting unset keys.
        """
        model = self.model_dump(by_alias=True, exclude_none=True)
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(json.dumps(model, indent=2), encoding="utf-8")

    @property
    def folder(self) -> str:
        return self.cloudinary_folder or DEFAULT_CLOUDINARY_FOLDER

    def create_store(self, *, logger: Logger) -> PostgresNodeStore:
        """
        Connect to database from this config's fields.
        """
        if not self.database_url:
            raise ConfigError("Blog CLI not configured. Run: blog setup")

        return PostgresNodeStore(
            self.database_url, ca_cert=self.ca_cert, logger=logger
        )

    def masked_database_url(self) -> str:
        if not self.database_url:
            return "not set"
        return "***" + self.database_url[-20:]


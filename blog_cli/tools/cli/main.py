"""
Entry point of `blog` CLI.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

import dotenv
from typer import Context, Exit, Option

from ...core import LocalStore, NodeStore, RemoteError
from ..config import BLOGS_DIR, CONFIG_FILE, Config, ConfigError
from . import configure, media, posts, sync
from ._utils import MainTyper, logger

app = MainTyper(
    "blog",
    help="Manage markdown blog posts and sync them with the database",
)


@app.callback()
def main(
    ctx: Context,
    config_file: Path = Option(
        CONFIG_FILE,
        help="Path to .json configuration file",
        envvar="BLOG_CONFIG_FILE",
        dir_okay=False,
    ),
    blogs_dir: Path = Option(
        BLOGS_DIR,
        help="Folder containing posts",
        envvar="BLOG_DIR",
        file_okay=False,
    ),
):
    # load environment variables from .env file if it exists
    dotenv.load_dotenv(Path(".env").resolve())

    ctx.obj = RootContext(
        ctx=ctx,
        config_file=config_file,
        blogs_dir=blogs_dir,
    )


# local authoring
app.command("new")(posts.new)
app.command("edit")(posts.edit)
app.command("list")(posts.list_posts)
app.command("ls", hidden=True)(posts.list_posts)
app.command("open")(posts.open_dir)

# sync with database
app.command("status")(sync.status)
app.command("st", hidden=True)(sync.status)
app.command("push")(sync.push)
app.command("pull")(sync.pull)
app.command("rm")(sync.rm)

# configuration and media
app.command("setup")(configure.setup)
app.command("config")(configure.show_config)
app.command("img")(media.img)


def run():
    app()


@dataclass(kw_only=True)
class RootContext:
    ctx: Context
    config_file: Path
    blogs_dir: Path
    _config: Config | None = field(default=None, repr=False)

    @property
    def config(self) -> Config:
        """
        Configuration, loaded from file upon first access.
        """
        if self._config is None:
            try:
                self._config = Config.load(self.config_file)
            except ConfigError as e:
                logger.error(str(e))
                raise Exit(code=1)
        return self._config

    @property
    def local(self) -> LocalStore:
        return LocalStore(self.blogs_dir, logger=logger)

    @contextmanager
    def open_store(self) -> Iterator[NodeStore]:
        """
        Connect to database for the duration of a command. Remote errors
        are logged and terminate the command.
        """
        try:
            store = self.config.create_store(logger=logger)
        except ConfigError as e:
            logger.error(str(e))
            raise Exit(code=1)
        except RemoteError as e:
            logger.error(f"DB: {e}")
            raise Exit(code=1)

        with store:
            try:
                yield store
            except RemoteError as e:
                logger.error(f"DB: {e}")
                raise Exit(code=1)


if __name__ == "__main__":
    app()

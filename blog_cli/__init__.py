"""
blog-cli: sync markdown blog posts with a PostgreSQL database.
"""

from pyrollup import rollup

from . import core
from .core import *  # noqa

__all__ = rollup(core)

__canonical_children__ = [
    "core",
]

"""
This module implements the document model, its text encoding and
reconciliation of local posts with the remote store.
"""

from pyrollup import rollup

from . import codec, document, exceptions, local, reconcile, remote
from .codec import *  # noqa
from .document import *  # noqa
from .exceptions import *  # noqa
from .local import *  # noqa
from .reconcile import *  # noqa
from .remote import *  # noqa

__all__ = rollup(
    document,
    codec,
    local,
    remote,
    reconcile,
    exceptions,
)

__canonical_children__ = [
    "document",
    "codec",
    "local",
    "remote",
    "reconcile",
    "exceptions",
]

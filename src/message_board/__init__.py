"""Message board: a small CRUD API for short text messages, plus a client.

This package provides a FastAPI application factory named ``create_app``
inside ``message_board/server.py`` (see :func:`create_app`).

Typical usage
-------------
from message_board import create_app
app = create_app()

or, from the provided launcher:

python scripts/run_server.py --host 127.0.0.1 --port 3001
"""

from __future__ import annotations

__all__ = ["create_app", "__version__", "get_version"]

__version__ = "1.0.0"


def get_version() -> str:
    """Return the package version."""
    return __version__


def create_app(*args, **kwargs):
    """Return a configured FastAPI application.

    This forwards to :func:`message_board.server.create_app`; the import is
    deferred so ``import message_board`` stays cheap for client-only use.
    """
    from .server import create_app as _create_app

    return _create_app(*args, **kwargs)

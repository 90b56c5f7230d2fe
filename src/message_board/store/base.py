"""Interface shared by the message stores."""

from __future__ import annotations

import abc
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import Message

DEFAULT_LIMIT = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageStore(abc.ABC):
    """Canonical owner of the message collection.

    Implementations raise the errors from :mod:`message_board.errors`;
    the API layer maps them to status codes.
    """

    #: Short name reported by ``/`` and ``/api/health``.
    backend: str = "unknown"

    @abc.abstractmethod
    def list(self, limit: Optional[int] = None) -> List[Message]:
        """Return messages newest first, at most ``limit`` of them.

        ``None`` means the store's own default (unbounded or a fixed page).
        """

    @abc.abstractmethod
    def create(self, text: str) -> Message:
        """Persist a new message and return it with its ``id`` and ``timestamp``."""

    @abc.abstractmethod
    def delete(self, message_id: str) -> None:
        """Remove the message named by ``message_id``."""

    @abc.abstractmethod
    def validate_id(self, message_id: str) -> str:
        """Return ``message_id`` if well-formed for this store, else raise ValidationError."""

    @abc.abstractmethod
    def health(self) -> Dict[str, Any]:
        """Return ``{"connected", "pingMs", "messageCount"}`` or raise."""

    def close(self) -> None:
        pass

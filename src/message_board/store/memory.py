"""In-process message store (thread-safe)."""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..errors import NotFound, ValidationError
from ..models import Message, clean_text
from .base import MessageStore, utc_now

logger = logging.getLogger(__name__)


class InMemoryMessageStore(MessageStore):
    """Ordered list of messages living as long as the process.

    Ids come from a counter and are never reused, even after deletion.
    Listing returns newest first. Timestamps never decrease, so reversed
    insertion order is descending timestamp with newer ids first on ties.
    """

    backend = "memory"

    def __init__(self, seed: Optional[Iterable[str]] = None) -> None:
        self._messages: List[Message] = []
        self._ids = itertools.count(1)
        self._last_ts: Optional[datetime] = None
        self._lock = threading.RLock()
        for text in seed or []:
            self.create(text)

    def _next_timestamp(self) -> datetime:
        # Wall clock may step backwards; keep insertion order non-decreasing.
        now = utc_now()
        if self._last_ts is not None and now < self._last_ts:
            now = self._last_ts
        self._last_ts = now
        return now

    def list(self, limit: Optional[int] = None) -> List[Message]:
        """Newest first; no cap unless ``limit`` is given."""
        with self._lock:
            newest_first = self._messages[::-1]
        if limit is None:
            return newest_first
        return newest_first[: max(0, limit)]

    def create(self, text: str) -> Message:
        text = clean_text(text)
        with self._lock:
            msg = Message(id=str(next(self._ids)), text=text, timestamp=self._next_timestamp())
            self._messages.append(msg)
        logger.debug("Stored message %s", msg.id)
        return msg

    def validate_id(self, message_id: str) -> str:
        s = str(message_id or "").strip()
        # Canonical form only: "01" would never match the stored "1"
        if not (s.isascii() and s.isdigit()) or s != str(int(s)) or int(s) <= 0:
            raise ValidationError(f"Invalid message id: {message_id!r}")
        return s

    def delete(self, message_id: str) -> None:
        key = self.validate_id(message_id)
        with self._lock:
            for i, msg in enumerate(self._messages):
                if msg.id == key:
                    del self._messages[i]
                    return
        raise NotFound()

    def health(self) -> Dict[str, Any]:
        with self._lock:
            count = len(self._messages)
        return {"connected": True, "pingMs": 0.0, "messageCount": count}

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

"""Client-side state controller for the message board.

Holds a disposable local copy of the message list and reconciles it with
the server optimistically: created messages are appended, deleted ones are
filtered out once the server confirms, and the list is fetched only once on
mount.

Each request moves through ``idle -> pending -> resolved | rejected`` so the
outcome of every action is observable in :attr:`BoardState.requests`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import httpx

from .models import Message

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=45.0, write=10.0, pool=5.0)


class RequestStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass
class BoardState:
    messages: List[Message] = field(default_factory=list)
    draft: str = ""
    loading: bool = True
    error: Optional[str] = None
    requests: Dict[str, RequestStatus] = field(default_factory=dict)

    def status(self, key: str) -> RequestStatus:
        return self.requests.get(key, RequestStatus.IDLE)


class RequestFailed(Exception):
    """Raised internally when a response is not 2xx; ``str()`` is shown to the user."""


class MessageBoardClient:
    """Drive the board state from user actions.

    Parameters
    ----------
    base_url : str
        Server root, e.g. ``http://127.0.0.1:3001``.
    http : httpx.Client | None
        Pre-built client (tests pass one with a mock transport).
    """

    def __init__(self, base_url: str = "http://127.0.0.1:3001", http: Optional[httpx.Client] = None) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=DEFAULT_TIMEOUT)
        self.state = BoardState()

    # --------- lifecycle ----------
    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MessageBoardClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --------- request state machine ----------
    def _begin(self, key: str) -> None:
        self.state.requests[key] = RequestStatus.PENDING

    def _resolve(self, key: str) -> None:
        self.state.requests[key] = RequestStatus.RESOLVED

    def _reject(self, key: str, err: Exception) -> None:
        self.state.requests[key] = RequestStatus.REJECTED
        self.state.error = str(err)
        logger.warning("%s failed: %s", key, err)

    # --------- actions ----------
    def mount(self) -> None:
        """Initial fetch of the message list."""
        self.state.loading = True
        self._begin("list")
        try:
            resp = self._http.get("/api/messages")
            if resp.is_error:
                raise RequestFailed(f"Failed to fetch: {resp.status_code} {resp.reason_phrase}")
            messages = [Message.model_validate(m) for m in resp.json()]
        except (httpx.HTTPError, RequestFailed, ValueError) as e:
            self._reject("list", e)
        else:
            self.state.messages = messages
            self.state.error = None
            self._resolve("list")
            logger.debug("Fetched %d messages", len(messages))
        finally:
            self.state.loading = False

    def set_draft(self, text: str) -> None:
        self.state.draft = text

    def submit(self) -> Optional[Message]:
        """Send the draft; blank drafts are ignored without a request."""
        draft = self.state.draft
        if not draft.strip():
            return None
        self._begin("create")
        try:
            resp = self._http.post("/api/messages", json={"text": draft})
            if resp.is_error:
                raise RequestFailed(f"Failed to add message: {resp.status_code}")
            msg = Message.model_validate(resp.json())
        except (httpx.HTTPError, RequestFailed, ValueError) as e:
            self._reject("create", e)
            return None
        self.state.messages = [*self.state.messages, msg]
        self.state.draft = ""
        self._resolve("create")
        return msg

    def delete(self, message_id: str) -> bool:
        """Delete on the server, then drop the local entry."""
        key = f"delete:{message_id}"
        self._begin(key)
        try:
            resp = self._http.delete(f"/api/messages/{message_id}")
            if resp.is_error:
                raise RequestFailed(f"Failed to delete: {resp.status_code} - {resp.text}")
        except (httpx.HTTPError, RequestFailed) as e:
            self._reject(key, e)
            return False
        self.state.messages = [m for m in self.state.messages if m.id != message_id]
        self._resolve(key)
        return True

    def dismiss_error(self) -> None:
        self.state.error = None

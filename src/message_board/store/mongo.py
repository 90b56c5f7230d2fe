"""MongoDB-backed message store with a lazily established, cached connection.

Each request handler may run in a fresh worker, so nothing assumes a prior
open connection. :class:`MongoConnection` keeps one process-wide client:

- created on first demand and cached,
- dropped when pymongo reports a failed heartbeat or a closed server,
- re-established on the next demand.

Concurrent callers may race to connect; the last successful attempt wins and
no lock is taken. Connect and socket I/O both carry timeout ceilings so no
call hangs indefinitely.

Reads and writes fail differently on purpose: :meth:`MongoMessageStore.list`
degrades to an empty list when the database is unreachable, while writes raise
:class:`~message_board.errors.StoreUnavailable`.
"""

from __future__ import annotations

import logging
import time
from datetime import timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, MongoClient, monitoring
from pymongo.errors import OperationFailure, PyMongoError

from ..errors import (
    ConfigurationMissing,
    ConnectionFailed,
    NotFound,
    StoreUnavailable,
    ValidationError,
)
from ..models import Message, clean_text
from .base import DEFAULT_LIMIT, MessageStore, utc_now

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_MS = 10_000
SOCKET_TIMEOUT_MS = 45_000

_AUTH_CODES = {18, 8000}  # AuthenticationFailed, Atlas "bad auth"
_DNS_MARKERS = (
    "getaddrinfo",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "enotfound",
    "dns",
)
_OPERATOR_HINTS = {
    "dns": "database host could not be resolved; check the connection string host name",
    "auth": "database rejected the credentials; check user name and password",
    "other": "database could not be reached",
}


def classify_failure(exc: BaseException) -> str:
    """Return ``"dns"``, ``"auth"`` or ``"other"`` for a connection failure."""
    text = str(exc).lower()
    if isinstance(exc, OperationFailure) and exc.code in _AUTH_CODES:
        return "auth"
    if "authentication failed" in text or "bad auth" in text:
        return "auth"
    if any(marker in text for marker in _DNS_MARKERS):
        return "dns"
    return "other"


# -----------------------------
# Monitoring listeners
# -----------------------------
class _HeartbeatInvalidator(monitoring.ServerHeartbeatListener):
    def __init__(self, conn: "MongoConnection", generation: int) -> None:
        self._conn = conn
        self._generation = generation

    def started(self, event: Any) -> None:
        pass

    def succeeded(self, event: Any) -> None:
        pass

    def failed(self, event: Any) -> None:
        logger.warning("Database heartbeat to %s failed: %s", event.connection_id, event.reply)
        self._conn.invalidate(self._generation)


class _ServerCloseInvalidator(monitoring.ServerListener):
    def __init__(self, conn: "MongoConnection", generation: int) -> None:
        self._conn = conn
        self._generation = generation

    def opened(self, event: Any) -> None:
        pass

    def description_changed(self, event: Any) -> None:
        pass

    def closed(self, event: Any) -> None:
        logger.info("Database server %s closed", event.server_address)
        self._conn.invalidate(self._generation)


# -----------------------------
# Connection cache
# -----------------------------
class MongoConnection:
    """Process-wide cached MongoDB client.

    Parameters
    ----------
    uri : str | None
        Connection string. ``None`` or blank means "not configured".
    db_name : str
        Database holding the messages collection.
    client_factory : callable
        Builds the client; defaults to :class:`pymongo.MongoClient`.
    """

    def __init__(
        self,
        uri: Optional[str],
        db_name: str = "message_board",
        *,
        connect_timeout_ms: int = CONNECT_TIMEOUT_MS,
        socket_timeout_ms: int = SOCKET_TIMEOUT_MS,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self.uri = (uri or "").strip() or None
        self.db_name = db_name
        self.connect_timeout_ms = int(connect_timeout_ms)
        self.socket_timeout_ms = int(socket_timeout_ms)
        self._client_factory = client_factory
        self._client: Any = None
        self._generation = 0
        self._stale: List[Any] = []

    @property
    def configured(self) -> bool:
        return self.uri is not None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> Any:
        """Return the cached database handle, connecting first if needed."""
        client = self._client
        if client is not None:
            return client[self.db_name]
        if not self.configured:
            raise ConfigurationMissing()

        self._close_stale()
        self._generation += 1
        generation = self._generation
        client = None
        try:
            client = self._client_factory(
                self.uri,
                connectTimeoutMS=self.connect_timeout_ms,
                socketTimeoutMS=self.socket_timeout_ms,
                serverSelectionTimeoutMS=self.connect_timeout_ms,
                tz_aware=True,
                appname="message-board",
                event_listeners=[
                    _HeartbeatInvalidator(self, generation),
                    _ServerCloseInvalidator(self, generation),
                ],
            )
            client.admin.command("ping")
        except PyMongoError as e:
            self._client = None
            if client is not None:
                # Built but unusable; close it with its monitor threads
                self._stale.append(client)
                self._close_stale()
            category = classify_failure(e)
            logger.error("Database connection failed (%s): %s: %s", category, _OPERATOR_HINTS[category], e)
            raise ConnectionFailed(category) from e

        self._client = client
        logger.info("Connected to database %r", self.db_name)
        return client[self.db_name]

    def invalidate(self, generation: Optional[int] = None) -> None:
        """Forget the cached client so the next :meth:`connect` starts over.

        ``generation`` lets a listener drop only the client it was registered
        with. The client is closed later, outside pymongo's monitor threads.
        """
        if generation is not None and generation != self._generation:
            return
        client, self._client = self._client, None
        if client is not None:
            self._stale.append(client)
            logger.warning("Database connection invalidated; will reconnect on next request")

    def _close_stale(self) -> None:
        while self._stale:
            client = self._stale.pop()
            try:
                client.close()
            except PyMongoError as e:
                logger.debug("Ignoring error while closing stale client: %s", e)

    def close(self) -> None:
        self.invalidate()
        self._close_stale()


# -----------------------------
# Store
# -----------------------------
def _to_message(doc: Dict[str, Any]) -> Message:
    ts = doc.get("timestamp") or utc_now()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return Message(id=str(doc["_id"]), text=str(doc.get("text", "")), timestamp=ts)


class MongoMessageStore(MessageStore):
    backend = "mongodb"

    def __init__(self, connection: MongoConnection, collection: str = "messages") -> None:
        self.connection = connection
        self.collection_name = collection

    def _collection(self) -> Any:
        return self.connection.connect()[self.collection_name]

    def list(self, limit: Optional[int] = None) -> List[Message]:
        limit = DEFAULT_LIMIT if limit is None else max(0, min(int(limit), DEFAULT_LIMIT))
        if limit == 0:
            return []
        try:
            coll = self._collection()
        except ConnectionFailed:
            logger.warning("Listing messages while database is unreachable; returning empty list")
            return []
        try:
            docs = coll.find({}, sort=[("timestamp", DESCENDING)], limit=limit)
            return [_to_message(d) for d in docs]
        except PyMongoError as e:
            logger.warning("Listing messages failed, returning empty list: %s", e)
            self.connection.invalidate()
            return []

    def create(self, text: str) -> Message:
        text = clean_text(text)
        coll = self._collection()
        doc = {"text": text, "timestamp": utc_now()}
        try:
            result = coll.insert_one(doc)
        except PyMongoError as e:
            logger.error("Storing message failed: %s", e)
            self.connection.invalidate()
            raise StoreUnavailable() from e
        msg = _to_message({"_id": result.inserted_id, **doc})
        logger.info("Stored message %s", msg.id)
        return msg

    def validate_id(self, message_id: str) -> str:
        s = str(message_id or "").strip()
        if not ObjectId.is_valid(s) or len(s) != 24:
            raise ValidationError(f"Invalid message id: {message_id!r}")
        return s

    def delete(self, message_id: str) -> None:
        key = self.validate_id(message_id)
        coll = self._collection()
        try:
            result = coll.delete_one({"_id": ObjectId(key)})
        except PyMongoError as e:
            logger.error("Deleting message %s failed: %s", key, e)
            self.connection.invalidate()
            raise StoreUnavailable() from e
        if result.deleted_count == 0:
            raise NotFound()
        logger.info("Deleted message %s", key)

    def health(self) -> Dict[str, Any]:
        db = self.connection.connect()
        try:
            started = time.perf_counter()
            db.command("ping")
            ping_ms = round((time.perf_counter() - started) * 1000, 2)
            count = db[self.collection_name].count_documents({})
        except PyMongoError as e:
            self.connection.invalidate()
            category = classify_failure(e)
            logger.error("Database health check failed (%s): %s", category, e)
            raise ConnectionFailed(category) from e
        return {"connected": True, "pingMs": ping_ms, "messageCount": count}

    def close(self) -> None:
        self.connection.close()

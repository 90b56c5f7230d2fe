"""Message stores: an in-process collection and a MongoDB-backed one."""

from .base import DEFAULT_LIMIT, MessageStore
from .memory import InMemoryMessageStore
from .mongo import MongoConnection, MongoMessageStore

__all__ = [
    "DEFAULT_LIMIT",
    "MessageStore",
    "InMemoryMessageStore",
    "MongoConnection",
    "MongoMessageStore",
]

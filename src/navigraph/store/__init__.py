"""Persistence backends with abstract base."""

from navigraph.store.base import BaseStore
from navigraph.store.memory import InMemoryStore
from navigraph.store.sqlite import SqliteStore

__all__ = [
    "BaseStore",
    "InMemoryStore",
    "SqliteStore",
]

"""Abstract base class for graph and session persistence backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from navigraph.session.models import BrowsingSession


class BaseStore(ABC):
    """Abstract interface for durable graph snapshots and sessions."""

    @abstractmethod
    def save_graph_snapshot(self, snapshot: dict[str, Any]) -> None:
        """Replace the stored graph snapshot."""
        ...

    @abstractmethod
    def load_graph_snapshot(self) -> dict[str, Any] | None:
        """Latest graph snapshot, or None if nothing was saved."""
        ...

    @abstractmethod
    def save_session(self, session: BrowsingSession) -> None:
        """Upsert a single session."""
        ...

    @abstractmethod
    def load_sessions(self) -> list[BrowsingSession]:
        """All stored sessions, oldest first."""
        ...

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Remove a session by ID."""
        ...

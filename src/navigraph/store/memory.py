"""In-process store; nothing survives the process."""

from __future__ import annotations

import copy
from dataclasses import asdict
from typing import Any

from navigraph.session.models import BrowsingSession
from navigraph.store.base import BaseStore


class InMemoryStore(BaseStore):
    """Keeps deep copies so later mutation of live objects does not leak in."""

    def __init__(self) -> None:
        self._snapshot: dict[str, Any] | None = None
        self._sessions: dict[str, dict[str, Any]] = {}

    def save_graph_snapshot(self, snapshot: dict[str, Any]) -> None:
        self._snapshot = copy.deepcopy(snapshot)

    def load_graph_snapshot(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._snapshot)

    def save_session(self, session: BrowsingSession) -> None:
        self._sessions[session.id] = asdict(session)

    def load_sessions(self) -> list[BrowsingSession]:
        sessions = [BrowsingSession.from_dict(copy.deepcopy(d)) for d in self._sessions.values()]
        sessions.sort(key=lambda s: s.start_time)
        return sessions

    def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

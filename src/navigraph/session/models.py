"""Data models for browsing sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionEventType(str, Enum):
    CREATED = "session.created"
    UPDATED = "session.updated"
    ENDED = "session.ended"
    ACTIVATED = "session.activated"
    DEACTIVATED = "session.deactivated"
    DELETED = "session.deleted"
    VIEWED = "session.viewed"


@dataclass
class BrowsingSession:
    """A bounded window of related browsing activity."""

    id: str
    title: str
    start_time: int  # epoch ms
    description: str = ""
    end_time: int | None = None  # None while active
    is_active: bool = True
    last_activity: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    node_ids: list[str] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.node_ids)

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BrowsingSession:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            start_time=int(data["start_time"]),
            description=data.get("description", ""),
            end_time=data.get("end_time"),
            is_active=bool(data.get("is_active", False)),
            last_activity=int(data.get("last_activity") or 0),
            metadata=dict(data.get("metadata") or {}),
            node_ids=list(data.get("node_ids") or []),
        )


@dataclass(frozen=True)
class SessionEvent:
    """A session lifecycle notification. Not persisted."""

    type: SessionEventType
    session_id: str
    timestamp: int
    data: Any = None

"""Synchronous publish/subscribe for session lifecycle events."""

from __future__ import annotations

import logging
from typing import Any, Callable

from navigraph.clock import Clock, now_ms
from navigraph.session.models import SessionEvent, SessionEventType

logger = logging.getLogger(__name__)

SessionEventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """Fan out session events to handlers registered per event type.

    Handlers run on the publisher's call stack in registration order. A
    handler that raises is logged and skipped; the remaining handlers still
    run and the publisher never sees the error.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or now_ms
        # dict keys double as an insertion-ordered set
        self._handlers: dict[SessionEventType, dict[SessionEventHandler, None]] = {}

    def subscribe(self, event_type: SessionEventType, handler: SessionEventHandler) -> SessionEventHandler:
        """Register a handler; returns it so callers can unsubscribe later."""
        self._handlers.setdefault(event_type, {})[handler] = None
        logger.debug("Subscribed to %s (%d handlers)", event_type.value, len(self._handlers[event_type]))
        return handler

    def unsubscribe(self, event_type: SessionEventType, handler: SessionEventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        handlers.pop(handler, None)
        if not handlers:
            del self._handlers[event_type]

    def publish(self, event_type: SessionEventType, session_id: str, data: Any = None) -> None:
        handlers = self._handlers.get(event_type)
        if not handlers:
            return

        event = SessionEvent(type=event_type, session_id=session_id, timestamp=self._clock(), data=data)
        for handler in list(handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Session event handler failed for %s (%s)", event_type.value, session_id)

    def clear(self) -> None:
        self._handlers.clear()

    def listener_count(self, event_type: SessionEventType) -> int:
        return len(self._handlers.get(event_type, ()))

    # ---- Convenience emitters ----

    def emit_created(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.CREATED, session_id, data)

    def emit_updated(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.UPDATED, session_id, data)

    def emit_ended(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.ENDED, session_id, data)

    def emit_activated(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.ACTIVATED, session_id, data)

    def emit_deactivated(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.DEACTIVATED, session_id, data)

    def emit_deleted(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.DELETED, session_id, data)

    def emit_viewed(self, session_id: str, data: Any = None) -> None:
        self.publish(SessionEventType.VIEWED, session_id, data)

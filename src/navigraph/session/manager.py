"""Session segmentation engine: owns sessions and the active-session pointer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from navigraph.clock import Clock, now_ms, resolve_timezone, to_datetime
from navigraph.exceptions import SessionNotFoundError, StoreError
from navigraph.ids import session_id as generate_session_id
from navigraph.session.events import SessionEventBus
from navigraph.session.models import BrowsingSession
from navigraph.session.strategies import DEFAULT_STRATEGY, SessionStrategy, SessionStrategyFactory

if TYPE_CHECKING:
    from navigraph.store.base import BaseStore

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT_MS = 30 * 60 * 1000

_SORT_FIELDS = {"start_time", "end_time", "title", "last_activity"}


class SessionManager:
    """Tracks browsing sessions and decides, per activity tick, when to roll over.

    At most one session is active. Once any activity has been seen there is
    always an active session: a rollover ends the old session and activates
    its successor within the same call.

    Args:
        bus: Event bus that receives lifecycle events.
        store: Optional persistence backend; every mutated session is saved.
        strategy: Name of the initial boundary policy.
        idle_timeout_ms: Idle gap the strategies compare against.
        timezone: IANA zone name for work-day boundaries (None = local).
        clock: Returns the current time in epoch ms.
    """

    def __init__(
        self,
        bus: SessionEventBus | None = None,
        store: BaseStore | None = None,
        strategy: str = DEFAULT_STRATEGY,
        idle_timeout_ms: int = DEFAULT_IDLE_TIMEOUT_MS,
        timezone: str | None = None,
        clock: Clock | None = None,
    ):
        self._clock = clock or now_ms
        self.bus = bus if bus is not None else SessionEventBus(clock=self._clock)
        self.store = store
        self.idle_timeout_ms = idle_timeout_ms
        self.timezone = resolve_timezone(timezone)
        self._sessions: dict[str, BrowsingSession] = {}
        self.active_session_id: str | None = None
        self.viewed_session_id: str | None = None
        self.last_activity_time = 0
        # events held back while a rollover is half done
        self._deferred_events: list[tuple[Callable[..., None], tuple]] | None = None
        self.strategy_factory = SessionStrategyFactory(self, strategy)

    def now(self) -> int:
        return self._clock()

    @property
    def strategy(self) -> SessionStrategy:
        return self.strategy_factory.get_active_strategy()

    def set_strategy(self, strategy_type: str) -> None:
        self.strategy_factory.set_active_strategy(strategy_type)

    # ---- Lookups ----

    def get_active_session(self) -> BrowsingSession | None:
        if self.active_session_id is None:
            return None
        return self._sessions.get(self.active_session_id)

    def get_session(self, session_id: str) -> BrowsingSession | None:
        return self._sessions.get(session_id)

    def get_sessions(
        self,
        include_ended: bool = True,
        limit: int | None = None,
        sort_by: str = "start_time",
        descending: bool = True,
    ) -> list[BrowsingSession]:
        if sort_by not in _SORT_FIELDS:
            raise ValueError(f"Cannot sort sessions by {sort_by!r}")
        sessions = [s for s in self._sessions.values() if include_ended or not s.is_ended]
        sessions.sort(key=lambda s: _sort_value(getattr(s, sort_by)), reverse=descending)
        return sessions[:limit] if limit is not None else sessions

    def _require(self, session_id: str) -> BrowsingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session does not exist: {session_id}")
        return session

    # ---- Lifecycle ----

    def create_session(
        self,
        title: str | None = None,
        description: str = "",
        metadata: dict[str, Any] | None = None,
        now: int | None = None,
    ) -> BrowsingSession:
        """Register a new session and make it the active one.

        The previously active session, if any, is deactivated first. Emits
        Created and then Activated.
        """
        now = self.now() if now is None else now
        moment = to_datetime(now, self.timezone)
        new_id = generate_session_id(moment.replace(tzinfo=None))
        while new_id in self._sessions:
            new_id = generate_session_id(moment.replace(tzinfo=None))

        previous_active = self.active_session_id
        if previous_active is not None:
            self._deactivate(previous_active, now)

        session = BrowsingSession(
            id=new_id,
            title=title or f"Session {moment:%Y-%m-%d %H:%M}",
            description=description,
            start_time=now,
            is_active=True,
            last_activity=now,
            metadata=dict(metadata or {}),
        )
        self._sessions[new_id] = session
        self.active_session_id = new_id
        if self.viewed_session_id is None or self.viewed_session_id == previous_active:
            self.viewed_session_id = new_id
        self._persist(session)

        logger.info("Created session %s (%s)", new_id, session.title)
        self._emit(self.bus.emit_created, new_id, {"title": session.title})
        self._emit(self.bus.emit_activated, new_id)
        return session

    def end_session(self, session_id: str, now: int | None = None) -> BrowsingSession:
        """Close a session for good. Ending an ended session is a no-op."""
        session = self._require(session_id)
        if session.is_ended:
            return session

        session.end_time = self.now() if now is None else now
        session.is_active = False
        if self.active_session_id == session_id:
            self.active_session_id = None
        self._persist(session)

        logger.info("Ended session %s", session_id)
        self._emit(self.bus.emit_ended, session_id)
        return session

    def _deactivate(self, session_id: str, now: int) -> None:
        session = self._sessions.get(session_id)
        if session is None or session.is_ended:
            return
        session.end_time = now
        session.is_active = False
        if self.active_session_id == session_id:
            self.active_session_id = None
        self._persist(session)
        self.bus.emit_deactivated(session_id)

    def update_session(
        self,
        session_id: str,
        title: str | None = None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> BrowsingSession:
        session = self._require(session_id)
        changed = []
        if title is not None and title != session.title:
            session.title = title
            changed.append("title")
        if description is not None and description != session.description:
            session.description = description
            changed.append("description")
        if metadata:
            session.metadata.update(metadata)
            changed.append("metadata")
        if changed:
            self._persist(session)
            self.bus.emit_updated(session_id, {"fields": changed})
        return session

    def delete_session(self, session_id: str) -> None:
        self._require(session_id)
        del self._sessions[session_id]
        if self.active_session_id == session_id:
            self.active_session_id = None
        if self.viewed_session_id == session_id:
            self.viewed_session_id = self.active_session_id

        if self.store is not None:
            try:
                self.store.delete_session(session_id)
            except StoreError as e:
                logger.error("Failed to delete stored session %s: %s", session_id, e)

        logger.info("Deleted session %s", session_id)
        self.bus.emit_deleted(session_id)

    def view_session(self, session_id: str) -> BrowsingSession:
        """Point the UI at a session; does not change which one is active."""
        session = self._require(session_id)
        self.viewed_session_id = session_id
        self.bus.emit_viewed(session_id)
        return session

    # ---- Activity ticks ----

    def mark_activity(self, now: int | None = None) -> BrowsingSession:
        """Record user activity and roll the session over if the strategy says so."""
        now = self.now() if now is None else now
        previous = self.last_activity_time
        self.last_activity_time = now

        active = self.get_active_session()
        if active is None:
            return self.strategy.create_session(now)

        if previous > 0 and self.strategy.should_create_new_session(previous, now, active):
            return self._roll_over(active, now)

        active.last_activity = now
        return active

    def check_day_transition(self, now: int | None = None) -> BrowsingSession:
        """Re-evaluate the boundary without counting as activity (e.g. on browser startup)."""
        now = self.now() if now is None else now
        active = self.get_active_session()
        if active is None:
            return self.strategy.create_session(now)

        last_activity = self.last_activity_time or active.last_activity or active.start_time
        if self.strategy.should_create_new_session(last_activity, now, active):
            return self._roll_over(active, now)
        return active

    def ensure_active_session(self, now: int | None = None) -> BrowsingSession:
        active = self.get_active_session()
        if active is not None:
            return active
        return self.strategy.create_session(now)

    def _roll_over(self, active: BrowsingSession, now: int) -> BrowsingSession:
        """End ``active`` and start its successor, then publish Ended, Created, Activated.

        Events are published only once the successor is active, so no
        subscriber observes a moment without an active session.
        """
        was_viewed = self.viewed_session_id == active.id
        self._deferred_events = []
        try:
            self.end_session(active.id, now)
            successor = self.strategy.create_session(now)
            if was_viewed:
                self.viewed_session_id = successor.id
        finally:
            deferred, self._deferred_events = self._deferred_events, None

        for emitter, args in deferred:
            emitter(*args)
        return successor

    def _emit(self, emitter: Callable[..., None], *args: Any) -> None:
        if self._deferred_events is not None:
            self._deferred_events.append((emitter, args))
        else:
            emitter(*args)

    # ---- Membership ----

    def add_node(self, session_id: str, node_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning("Cannot add node %s to unknown session %s", node_id, session_id)
            return
        if node_id in session.node_ids:
            return
        session.node_ids.append(node_id)
        self._persist(session)
        self.bus.emit_updated(session_id, {"node_id": node_id, "node_count": session.node_count})

    # ---- Persistence ----

    def persist_all(self) -> None:
        for session in self._sessions.values():
            self._persist(session)

    def restore(self) -> BrowsingSession | None:
        """Load sessions from the store and resume the newest active one."""
        if self.store is None:
            return None
        try:
            sessions = self.store.load_sessions()
        except StoreError as e:
            logger.error("Failed to load sessions: %s", e)
            return None

        for session in sessions:
            self._sessions[session.id] = session

        candidates = sorted(
            (s for s in sessions if s.is_active and not s.is_ended),
            key=lambda s: s.start_time,
            reverse=True,
        )
        if not candidates:
            logger.info("Restored %d sessions; none active", len(sessions))
            return None

        active, stale = candidates[0], candidates[1:]
        for session in stale:
            self._deactivate(session.id, session.last_activity or session.start_time)

        self.active_session_id = active.id
        self.viewed_session_id = active.id
        self.last_activity_time = active.last_activity or active.start_time
        logger.info("Restored %d sessions; resuming %s", len(sessions), active.id)
        self.bus.emit_activated(active.id)
        return active

    def _persist(self, session: BrowsingSession) -> None:
        if self.store is None:
            return
        try:
            self.store.save_session(session)
        except StoreError as e:
            logger.error("Failed to save session %s: %s", session.id, e)


def _sort_value(value: Any) -> Any:
    # Ended-less sessions sort as newest.
    return float("inf") if value is None else value

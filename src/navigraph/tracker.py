"""Entry point for browser signals: wires the ledger, graph and session engine together."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from navigraph.clock import Clock, now_ms
from navigraph.config import TrackerConfig
from navigraph.exceptions import NavigraphError, StoreError
from navigraph.ids import node_id
from navigraph.navigation.graph import NavigationGraph
from navigraph.navigation.ledger import PendingNavigationLedger
from navigraph.navigation.metadata import extract_page_metadata
from navigraph.navigation.models import (
    MetadataSource,
    NavigationType,
    NavNode,
    OpenTarget,
    PageMetadata,
    PendingNavigation,
    UpdateNodeResult,
)
from navigraph.navigation.transitions import classify_transition
from navigraph.session.events import SessionEventBus, SessionEventHandler
from navigraph.session.manager import SessionManager
from navigraph.session.models import BrowsingSession, SessionEventType
from navigraph.store.base import BaseStore
from navigraph.store.memory import InMemoryStore
from navigraph.store.sqlite import SqliteStore
from navigraph.urls import is_empty_tab_url, is_error_page, is_same_url, is_system_page

logger = logging.getLogger(__name__)


@dataclass
class TabInfo:
    """What the browser reports about a tab."""

    tab_id: int
    url: str = ""
    title: str | None = None
    fav_icon_url: str | None = None
    active: bool = False
    window_id: int | None = None
    window_focused: bool = False
    is_popup: bool = False


class TabLookup(ABC):
    """Tab/window query capability supplied by the host browser."""

    @abstractmethod
    def get_tab(self, tab_id: int) -> TabInfo | None:
        """Current state of a tab, or None if it no longer exists."""
        ...


class NavigationTracker:
    """Single entry point for navigation signals.

    Construct once at startup and pass it to whatever receives browser
    events. Every call runs to completion on the caller's thread. Failures
    inside the pipeline are logged and never raised to the caller: a bad
    signal leaves the graph under-recorded rather than broken.

    Args:
        config: Settings; defaults to ``TrackerConfig()``.
        store: Persistence backend; defaults to SQLite when
            ``config.db_path`` is set, otherwise in-memory.
        tab_lookup: Optional tab query service used to enrich new nodes.
        clock: Returns the current time in epoch ms.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        store: BaseStore | None = None,
        tab_lookup: TabLookup | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or TrackerConfig()
        self._clock = clock or now_ms
        if store is None:
            store = SqliteStore(self.config.db_path) if self.config.db_path else InMemoryStore()
        self.store = store
        self.tab_lookup = tab_lookup

        self.bus = SessionEventBus(clock=self._clock)
        self.sessions = SessionManager(
            bus=self.bus,
            store=self.store,
            strategy=self.config.session_strategy,
            idle_timeout_ms=self.config.idle_timeout_ms,
            timezone=self.config.timezone,
            clock=self._clock,
        )
        self.ledger = PendingNavigationLedger(ttl_ms=self.config.pending_ttl_ms, clock=self._clock)
        self.graph = NavigationGraph(self.sessions, self.ledger, clock=self._clock)

    @classmethod
    def from_env(cls, **kwargs: Any) -> NavigationTracker:
        return cls(config=TrackerConfig.from_env(), **kwargs)

    # ---- Committed navigations ----

    def record_navigation(
        self,
        tab_id: int,
        url: str,
        navigation_type: NavigationType = NavigationType.INITIAL,
        timestamp: int | None = None,
        open_target: OpenTarget = OpenTarget.SAME_TAB,
        frame_id: int = 0,
        parent_frame_id: int = -1,
    ) -> NavNode | None:
        """Record a navigation the browser confirmed as committed.

        Returns the target node, or None for ignored pages (browser-internal,
        error and blank pages) and contained failures.
        """
        if is_error_page(url) or is_system_page(url) or is_empty_tab_url(url):
            logger.debug("Ignoring navigation to %s", url)
            return None

        timestamp = self._clock() if timestamp is None else timestamp
        try:
            self.sessions.mark_activity(timestamp)
            node = self.graph.record_navigation(
                tab_id,
                url,
                navigation_type=navigation_type,
                timestamp=timestamp,
                open_target=open_target,
                frame_id=frame_id,
                parent_frame_id=parent_frame_id,
            )
        except NavigraphError as e:
            logger.error("Failed to record navigation to %s on tab %s: %s", url, tab_id, e)
            return None
        except Exception:
            logger.exception("Unexpected error recording navigation to %r on tab %s", url, tab_id)
            return None

        self._enrich_from_tab(node)
        return node

    def handle_committed(self, details: dict[str, Any]) -> NavNode | None:
        """Record a webNavigation.onCommitted-style payload.

        Sub-frame commits are ignored; the transition type and qualifiers
        decide the navigation type.
        """
        if details.get("frameId", 0) != 0:
            return None
        tab_id = details.get("tabId")
        url = details.get("url") or ""
        if tab_id is None or not url:
            logger.warning("Committed navigation without tab or url: %s", details)
            return None

        tab = self._lookup_tab(tab_id)
        nav_type, open_target = classify_transition(
            details.get("transitionType"),
            details.get("transitionQualifiers"),
            is_popup=bool(tab and tab.is_popup),
        )
        raw_ts = details.get("timeStamp")
        return self.record_navigation(
            tab_id,
            url,
            navigation_type=nav_type,
            timestamp=int(raw_ts) if raw_ts is not None else None,
            open_target=open_target,
            parent_frame_id=details.get("parentFrameId", -1),
        )

    # ---- Intents ----

    def record_intent(self, intent: PendingNavigation) -> PendingNavigation:
        return self.ledger.record(intent)

    def record_link_click(
        self,
        source_url: str,
        target_url: str,
        tab_id: int | None = None,
        source_node_id: str = "",
        anchor_text: str = "",
        is_new_tab: bool = False,
    ) -> PendingNavigation:
        return self.ledger.record_link_click(
            source_node_id or self._source_id(tab_id, source_url),
            source_url,
            target_url,
            tab_id=tab_id,
            anchor_text=anchor_text,
            is_new_tab=is_new_tab,
        )

    def record_form_submit(
        self,
        tab_id: int,
        source_url: str,
        form_action: str,
        form_elements: list[str] | None = None,
        source_node_id: str = "",
    ) -> PendingNavigation:
        return self.ledger.record_form_submit(
            tab_id,
            source_node_id or self._source_id(tab_id, source_url),
            source_url,
            form_action,
            form_elements=form_elements,
        )

    def record_js_navigation(
        self,
        tab_id: int,
        source_url: str,
        target_url: str,
        source_node_id: str = "",
    ) -> PendingNavigation:
        return self.ledger.record_js_navigation(
            tab_id,
            source_node_id or self._source_id(tab_id, source_url),
            source_url,
            target_url,
        )

    def record_redirect(
        self,
        tab_id: int,
        source_url: str,
        target_url: str,
        status_code: int | None = None,
    ) -> PendingNavigation | None:
        if is_system_page(target_url):
            return None
        return self.ledger.record_redirect(
            tab_id,
            source_url,
            target_url,
            source_node_id=self._source_id(tab_id, source_url),
            status_code=status_code,
        )

    @staticmethod
    def _source_id(tab_id: int | None, source_url: str) -> str:
        return node_id(tab_id, source_url) if tab_id is not None else ""

    # ---- Metadata ----

    def update_node_metadata(
        self,
        nid: str,
        metadata: PageMetadata,
        source: MetadataSource = MetadataSource.CHROME_API,
    ) -> UpdateNodeResult:
        return self.graph.update_node_metadata(nid, metadata, source)

    def update_page_metadata(self, tab_id: int, url: str, html: str) -> UpdateNodeResult:
        """Apply metadata a content script scraped from the rendered page."""
        metadata = extract_page_metadata(html, page_url=url)
        return self.graph.update_node_metadata(node_id(tab_id, url), metadata, MetadataSource.CONTENT_SCRIPT)

    def _enrich_from_tab(self, node: NavNode) -> None:
        tab = self._lookup_tab(node.tab_id)
        if tab is None or (tab.url and not is_same_url(tab.url, node.url)):
            return
        if tab.title or tab.fav_icon_url:
            self.graph.update_node_metadata(
                node.id,
                PageMetadata(title=tab.title, favicon=tab.fav_icon_url),
                MetadataSource.CHROME_API,
            )

    def _lookup_tab(self, tab_id: int) -> TabInfo | None:
        if self.tab_lookup is None:
            return None
        try:
            return self.tab_lookup.get_tab(tab_id)
        except Exception as e:
            logger.warning("Tab lookup failed for tab %s: %s", tab_id, e)
            return None

    # ---- Tabs ----

    def handle_tab_activated(self, tab_id: int) -> None:
        """Switching to a real page counts as activity."""
        tab = self._lookup_tab(tab_id)
        if tab is None or not tab.url or is_system_page(tab.url):
            return
        self.sessions.mark_activity(self._clock())

    def handle_tab_closed(self, tab_id: int) -> None:
        self.ledger.clear_tab(tab_id)
        closed = self.graph.close_nodes_for_tab(tab_id, self._clock())
        logger.debug("Tab %s closed; %d nodes marked closed", tab_id, closed)

    # ---- Sessions ----

    def get_active_session(self) -> BrowsingSession | None:
        return self.sessions.get_active_session()

    def on_session_event(self, event_type: SessionEventType, handler: SessionEventHandler) -> SessionEventHandler:
        return self.bus.subscribe(event_type, handler)

    def off_session_event(self, event_type: SessionEventType, handler: SessionEventHandler) -> None:
        self.bus.unsubscribe(event_type, handler)

    def session_graph(self, session_id: str | None = None) -> dict[str, Any]:
        """Graph view of a session; defaults to the one the UI is viewing."""
        session_id = session_id or self.sessions.viewed_session_id or self.sessions.active_session_id
        if session_id is None:
            return {"records": {}, "edges": {}, "root_ids": []}
        return self.graph.session_graph(session_id)

    # ---- Persistence ----

    def save(self) -> bool:
        try:
            self.store.save_graph_snapshot(self.graph.to_snapshot())
        except StoreError as e:
            logger.error("Failed to save graph snapshot: %s", e)
            return False
        self.sessions.persist_all()
        return True

    def load(self) -> bool:
        """Restore sessions and the graph from the store."""
        self.sessions.restore()
        try:
            snapshot = self.store.load_graph_snapshot()
        except StoreError as e:
            logger.error("Failed to load graph snapshot: %s", e)
            return False
        if snapshot:
            self.graph.load_snapshot(snapshot)
        return True

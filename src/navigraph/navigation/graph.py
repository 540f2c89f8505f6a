"""Navigation graph builder: page-visit nodes joined by causal edges."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, fields
from typing import Any

from navigraph.clock import Clock, now_ms, to_datetime
from navigraph.exceptions import InvalidReferenceError
from navigraph.ids import edge_id, node_id
from navigraph.navigation.ledger import PendingNavigationLedger
from navigraph.navigation.models import (
    EdgeStats,
    MetadataSource,
    NavEdge,
    NavigationType,
    NavNode,
    NodeCreationOptions,
    OpenTarget,
    PageMetadata,
    PendingNavigation,
    SessionStatistics,
    UpdateNodeResult,
)
from navigraph.session.manager import SessionManager
from navigraph.session.models import BrowsingSession
from navigraph.urls import extract_domain, normalize_url

logger = logging.getLogger(__name__)

_PRECEDENCE_FIELDS = ("title", "favicon", "description", "keywords")


class NavigationGraph:
    """Owns every node and edge and turns committed navigations into graph updates.

    Must be driven from a single call path; nothing here is locked.

    Args:
        sessions: Supplies the active session new nodes are assigned to.
        ledger: Pending intents consulted by ``record_navigation``.
        clock: Returns the current time in epoch ms.
    """

    def __init__(
        self,
        sessions: SessionManager,
        ledger: PendingNavigationLedger | None = None,
        clock: Clock | None = None,
    ):
        self._clock = clock or now_ms
        self.sessions = sessions
        self.ledger = ledger if ledger is not None else PendingNavigationLedger(clock=self._clock)
        self._nodes: dict[str, NavNode] = {}
        self._edges: dict[str, NavEdge] = {}
        self._tab_history: dict[int, list[str]] = {}

    # ---- Nodes ----

    def create_or_get_node(self, options: NodeCreationOptions) -> NavNode:
        """Return the node for (tab, url), creating and registering it if new."""
        timestamp = self._clock() if options.timestamp is None else options.timestamp
        nid = node_id(options.tab_id, options.url)

        existing = self._nodes.get(nid)
        if existing is not None:
            existing.visit_count += 1
            existing.last_visit = max(existing.last_visit, timestamp)
            if existing.is_closed:
                existing.is_closed = False
                existing.closed_at = None
            if options.metadata is not None:
                self._apply_metadata(existing, options.metadata, options.source)
            self._push_tab_history(options.tab_id, nid)
            return existing

        session = self.sessions.ensure_active_session(timestamp)
        node = NavNode(
            id=nid,
            tab_id=options.tab_id,
            url=normalize_url(options.url),
            navigation_type=options.navigation_type,
            open_target=options.open_target,
            created_at=timestamp,
            session_id=session.id,
            parent_id=options.parent_id or None,
            source=options.source,
            last_visit=timestamp,
            frame_id=options.frame_id,
            parent_frame_id=options.parent_frame_id,
        )
        if options.metadata is not None:
            self._apply_metadata(node, options.metadata, options.source)

        self._nodes[nid] = node
        self._push_tab_history(options.tab_id, nid)
        logger.debug("Created node %s (parent=%s)", nid, node.parent_id)
        self.sessions.add_node(session.id, nid)
        return node

    def get_node(self, nid: str) -> NavNode | None:
        return self._nodes.get(nid)

    def nodes(self) -> list[NavNode]:
        return list(self._nodes.values())

    def nodes_for_session(self, session_id: str) -> list[NavNode]:
        return [n for n in self._nodes.values() if n.session_id == session_id]

    def root_ids(self, session_id: str) -> list[str]:
        return [n.id for n in self.nodes_for_session(session_id) if not n.parent_id]

    def last_node_for_tab(self, tab_id: int) -> NavNode | None:
        history = self._tab_history.get(tab_id)
        return self._nodes.get(history[-1]) if history else None

    def find_node_by_url(self, url: str, session_id: str | None = None) -> NavNode | None:
        """Most recently visited node for a url, optionally within one session."""
        target = normalize_url(url)
        matches = [
            n for n in self._nodes.values()
            if n.url == target and (session_id is None or n.session_id == session_id)
        ]
        return max(matches, key=lambda n: n.last_visit, default=None)

    def close_nodes_for_tab(self, tab_id: int, now: int | None = None) -> int:
        """Mark every open node of a closed tab as closed; returns the count."""
        now = self._clock() if now is None else now
        closed = 0
        for node in self._nodes.values():
            if node.tab_id == tab_id and not node.is_closed:
                node.is_closed = True
                node.closed_at = now
                closed += 1
        self._tab_history.pop(tab_id, None)
        return closed

    def _push_tab_history(self, tab_id: int, nid: str) -> None:
        history = self._tab_history.setdefault(tab_id, [])
        if not history or history[-1] != nid:
            history.append(nid)

    # ---- Edges ----

    def create_edge(
        self,
        source_id: str,
        target_id: str,
        navigation_type: NavigationType,
        timestamp: int | None = None,
    ) -> NavEdge:
        """Add a directed edge. Repeated transitions each get their own edge."""
        missing = [nid for nid in (source_id, target_id) if nid not in self._nodes]
        if missing:
            raise InvalidReferenceError(f"Edge endpoint(s) not in graph: {', '.join(missing)}")

        timestamp = self._clock() if timestamp is None else timestamp
        edge = NavEdge(
            id=edge_id(source_id, target_id, timestamp),
            source_id=source_id,
            target_id=target_id,
            navigation_type=navigation_type,
            timestamp=timestamp,
            session_id=self._nodes[target_id].session_id,
        )
        if edge.id in self._edges:
            logger.warning("Edge id collision for %s; keeping the first edge", edge.id)
            return self._edges[edge.id]
        self._edges[edge.id] = edge
        return edge

    def get_edge(self, eid: str) -> NavEdge | None:
        return self._edges.get(eid)

    def edges(self) -> list[NavEdge]:
        return list(self._edges.values())

    def edges_for_session(self, session_id: str) -> list[NavEdge]:
        return [e for e in self._edges.values() if e.session_id == session_id]

    def outgoing_edges(self, source_id: str) -> list[NavEdge]:
        return [e for e in self._edges.values() if e.source_id == source_id]

    def incoming_edges(self, target_id: str) -> list[NavEdge]:
        return [e for e in self._edges.values() if e.target_id == target_id]

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
    ) -> NavNode:
        """Fold a committed navigation into the graph.

        A matching intent supplies the parent node and the edge type (its
        type is more specific than the browser's). Without one, the page is
        recorded as a parentless entry point (typed url, bookmark, restart).
        """
        timestamp = self._clock() if timestamp is None else timestamp
        intent = self.ledger.consume(tab_id, url, now=timestamp)

        if intent is None:
            return self.create_or_get_node(NodeCreationOptions(
                tab_id=tab_id,
                url=url,
                navigation_type=navigation_type,
                open_target=open_target,
                source=MetadataSource.NAVIGATION_EVENT,
                timestamp=timestamp,
                frame_id=frame_id,
                parent_frame_id=parent_frame_id,
            ))

        source = self._resolve_source(intent, tab_id, timestamp)
        if intent.is_new_tab and open_target == OpenTarget.SAME_TAB:
            open_target = OpenTarget.NEW_TAB
        target = self.create_or_get_node(NodeCreationOptions(
            tab_id=tab_id,
            url=url,
            parent_id=source.id if source.id != node_id(tab_id, url) else None,
            navigation_type=intent.type,
            open_target=open_target,
            source=MetadataSource.NAVIGATION_EVENT,
            timestamp=timestamp,
            frame_id=frame_id,
            parent_frame_id=parent_frame_id,
        ))

        try:
            self.create_edge(source.id, target.id, intent.type, timestamp)
        except InvalidReferenceError as e:
            logger.error("Dropped edge for navigation to %s: %s", url, e)
        return target

    def _resolve_source(self, intent: PendingNavigation, tab_id: int, timestamp: int) -> NavNode:
        if intent.source_node_id:
            known = self._nodes.get(intent.source_node_id)
            if known is not None:
                return known
        source_tab = intent.source_tab_id if intent.source_tab_id is not None else tab_id
        source_id = node_id(source_tab, intent.source_url)
        known = self._nodes.get(source_id)
        if known is not None:
            return known
        return self.create_or_get_node(NodeCreationOptions(
            tab_id=source_tab,
            url=intent.source_url,
            source=MetadataSource.NAVIGATION_EVENT,
            timestamp=min(intent.created_at or timestamp, timestamp),
        ))

    # ---- Metadata ----

    def update_node_metadata(
        self,
        nid: str,
        metadata: PageMetadata,
        source: MetadataSource = MetadataSource.CHROME_API,
    ) -> UpdateNodeResult:
        """Merge late-arriving page details. Unknown nodes are a logged no-op."""
        node = self._nodes.get(nid)
        if node is None:
            logger.warning("Metadata for unknown node %s ignored", nid)
            return UpdateNodeResult(success=False, error=f"Node not found: {nid}")
        return UpdateNodeResult(success=True, updated_fields=self._apply_metadata(node, metadata, source))

    def _apply_metadata(self, node: NavNode, metadata: PageMetadata, source: MetadataSource) -> list[str]:
        updated = []
        for name in _PRECEDENCE_FIELDS:
            value = getattr(metadata, name)
            if not value or value == getattr(node, name):
                continue
            current = getattr(node, name)
            owner = node.field_sources.get(name)
            if current and owner is not None and source.priority < owner.priority:
                continue
            setattr(node, name, value)
            node.field_sources[name] = source
            updated.append(name)

        if metadata.referrer and not node.parent_id and metadata.referrer != node.referrer:
            node.referrer = metadata.referrer
            updated.append("referrer")
        if metadata.load_time and node.load_time is None:
            node.load_time = metadata.load_time
            updated.append("load_time")
        if source.priority > node.source.priority:
            node.source = source
            updated.append("source")

        if updated:
            logger.debug("Node %s metadata updated from %s: %s", node.id, source.value, updated)
        return updated

    # ---- Views ----

    def session_graph(self, session_id: str) -> dict[str, Any]:
        """Records, edges and root ids for one session, keyed for renderers."""
        nodes = self.nodes_for_session(session_id)
        return {
            "records": {n.id: _node_to_dict(n) for n in nodes},
            "edges": {e.id: _edge_to_dict(e) for e in self.edges_for_session(session_id)},
            "root_ids": [n.id for n in nodes if not n.parent_id],
        }

    def edge_stats(self, session_id: str) -> EdgeStats:
        edges = self.edges_for_session(session_id)
        stats = EdgeStats(total=len(edges))
        if not edges:
            return stats

        stats.by_type = dict(Counter(e.navigation_type.value for e in edges))
        out_degree = Counter(e.source_id for e in edges)
        in_degree = Counter(e.target_id for e in edges)
        stats.max_out_degree = max(out_degree.values())
        stats.max_in_degree = max(in_degree.values())
        stats.avg_out_degree = len(edges) / len(out_degree)
        stats.avg_in_degree = len(edges) / len(in_degree)
        return stats

    def session_statistics(self, session: BrowsingSession, top: int = 10) -> SessionStatistics:
        nodes = self.nodes_for_session(session.id)
        end = session.end_time if session.end_time is not None else self._clock()

        domains: Counter[str] = Counter()
        pages: dict[str, dict] = {}
        hours: Counter[int] = Counter()
        for node in nodes:
            domain = extract_domain(node.url)
            if not domain:
                continue
            domains[domain] += 1
            page = pages.setdefault(node.url, {"url": node.url, "title": node.title or node.url, "visits": 0})
            page["visits"] += node.visit_count
            hours[to_datetime(node.created_at, self.sessions.timezone).hour] += 1

        return SessionStatistics(
            total_nodes=len(nodes),
            unique_domains=len(domains),
            duration=max(0, end - session.start_time),
            top_domains=[{"domain": d, "count": c} for d, c in domains.most_common(top)],
            most_visited_pages=sorted(pages.values(), key=lambda p: p["visits"], reverse=True)[:top],
            activity_by_hour=[{"hour": h, "count": hours[h]} for h in sorted(hours)],
        )

    # ---- Snapshots ----

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "nodes": [_node_to_dict(n) for n in self._nodes.values()],
            "edges": [_edge_to_dict(e) for e in self._edges.values()],
            "tab_history": {str(tab): list(ids) for tab, ids in self._tab_history.items()},
        }

    def load_snapshot(self, snapshot: dict[str, Any]) -> None:
        """Replace the graph contents with a snapshot from ``to_snapshot``."""
        self._nodes = {}
        for raw in snapshot.get("nodes", []):
            node = _node_from_dict(raw)
            self._nodes[node.id] = node
        self._edges = {}
        for raw in snapshot.get("edges", []):
            edge = _edge_from_dict(raw)
            self._edges[edge.id] = edge
        self._tab_history = {
            int(tab): [nid for nid in ids if nid in self._nodes]
            for tab, ids in (snapshot.get("tab_history") or {}).items()
        }
        logger.info("Loaded graph snapshot: %d nodes, %d edges", len(self._nodes), len(self._edges))

    def reset(self) -> None:
        self._nodes.clear()
        self._edges.clear()
        self._tab_history.clear()


_NODE_FIELDS = {f.name for f in fields(NavNode)}
_EDGE_FIELDS = {f.name for f in fields(NavEdge)}


def _node_to_dict(node: NavNode) -> dict[str, Any]:
    data = asdict(node)
    data["navigation_type"] = node.navigation_type.value
    data["open_target"] = node.open_target.value
    data["source"] = node.source.value
    data["field_sources"] = {k: v.value for k, v in node.field_sources.items()}
    return data


def _node_from_dict(raw: dict[str, Any]) -> NavNode:
    data = {k: v for k, v in raw.items() if k in _NODE_FIELDS}
    data["navigation_type"] = NavigationType(data.get("navigation_type", NavigationType.INITIAL.value))
    data["open_target"] = OpenTarget(data.get("open_target", OpenTarget.SAME_TAB.value))
    data["source"] = MetadataSource(data.get("source", MetadataSource.CHROME_API.value))
    data["field_sources"] = {k: MetadataSource(v) for k, v in (data.get("field_sources") or {}).items()}
    return NavNode(**data)


def _edge_to_dict(edge: NavEdge) -> dict[str, Any]:
    data = asdict(edge)
    data["navigation_type"] = edge.navigation_type.value
    return data


def _edge_from_dict(raw: dict[str, Any]) -> NavEdge:
    data = {k: v for k, v in raw.items() if k in _EDGE_FIELDS}
    data["navigation_type"] = NavigationType(data["navigation_type"])
    return NavEdge(**data)

"""Tests for the navigation graph builder."""

import logging

import pytest

from navigraph.exceptions import InvalidReferenceError
from navigraph.ids import node_id
from navigraph.navigation.graph import NavigationGraph
from navigraph.navigation.ledger import PendingNavigationLedger
from navigraph.navigation.models import (
    MetadataSource,
    NavigationType,
    NodeCreationOptions,
    OpenTarget,
    PageMetadata,
)
from navigraph.session.manager import SessionManager


@pytest.fixture
def graph(clock):
    sessions = SessionManager(clock=clock)
    return NavigationGraph(sessions, PendingNavigationLedger(clock=clock), clock=clock)


def _link(graph, tab, source_url, target_url, **kwargs):
    return graph.ledger.record_link_click(
        node_id(tab, source_url), source_url, target_url, tab_id=tab, **kwargs
    )


def test_create_node_joins_active_session(graph):
    node = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com/"))
    session = graph.sessions.get_active_session()

    assert node.id == node_id(1, "https://a.com")
    assert node.session_id == session.id
    assert session.node_ids == [node.id]
    assert node.visit_count == 1


def test_revisit_merges_into_one_node(graph, clock):
    first = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com"))
    clock.advance(5_000)
    again = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com/#section"))

    assert again is first
    assert again.visit_count == 2
    assert again.last_visit == clock.now
    assert len(graph.nodes()) == 1


def test_same_url_on_other_tab_is_a_separate_node(graph):
    a = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com"))
    b = graph.create_or_get_node(NodeCreationOptions(tab_id=2, url="https://a.com"))
    assert a.id != b.id


def test_create_edge_rejects_unknown_endpoint(graph):
    node = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com"))
    with pytest.raises(InvalidReferenceError):
        graph.create_edge(node.id, "1-ghost.com-0", NavigationType.LINK_CLICK)
    assert graph.edges() == []


def test_edge_inherits_target_session(graph):
    a = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com"))
    b = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://b.com"))
    edge = graph.create_edge(a.id, b.id, NavigationType.LINK_CLICK)
    assert edge.session_id == b.session_id
    assert graph.get_edge(edge.id) is edge


def test_edge_id_collision_keeps_first(graph, caplog):
    a = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://a.com"))
    b = graph.create_or_get_node(NodeCreationOptions(tab_id=1, url="https://b.com"))
    first = graph.create_edge(a.id, b.id, NavigationType.LINK_CLICK, timestamp=100)
    with caplog.at_level(logging.WARNING):
        second = graph.create_edge(a.id, b.id, NavigationType.JAVASCRIPT, timestamp=100)
    assert second is first
    assert "collision" in caplog.text


def test_matched_navigation_sets_parent_and_edge(graph, clock):
    graph.record_navigation(7, "https://a.com")
    _link(graph, 7, "https://a.com", "https://b.com")
    clock.advance(500)

    target = graph.record_navigation(7, "https://b.com", navigation_type=NavigationType.ADDRESS_BAR)

    assert target.parent_id == node_id(7, "https://a.com")
    assert target.navigation_type == NavigationType.LINK_CLICK
    edges = graph.incoming_edges(target.id)
    assert len(edges) == 1
    assert edges[0].navigation_type == NavigationType.LINK_CLICK
    assert edges[0].source_id == node_id(7, "https://a.com")


def test_unmatched_navigation_is_parentless(graph):
    node = graph.record_navigation(7, "https://c.com", navigation_type=NavigationType.ADDRESS_BAR)
    assert node.parent_id is None
    assert node.navigation_type == NavigationType.ADDRESS_BAR
    assert node.source == MetadataSource.NAVIGATION_EVENT
    assert graph.edges() == []


def test_repeated_transition_adds_one_edge_each(graph, clock):
    graph.record_navigation(1, "https://a.com")
    for _ in range(2):
        clock.advance(1_000)
        _link(graph, 1, "https://a.com", "https://b.com")
        clock.advance(100)
        graph.record_navigation(1, "https://b.com")
        clock.advance(100)
        graph.record_navigation(1, "https://a.com", navigation_type=NavigationType.HISTORY_BACK)

    assert len(graph.outgoing_edges(node_id(1, "https://a.com"))) == 2
    assert graph.get_node(node_id(1, "https://b.com")).visit_count == 2


def test_new_tab_intent_links_across_tabs(graph):
    graph.record_navigation(1, "https://a.com")
    _link(graph, 1, "https://a.com", "https://b.com", is_new_tab=True)

    target = graph.record_navigation(2, "https://b.com")

    assert target.tab_id == 2
    assert target.parent_id == node_id(1, "https://a.com")
    assert target.open_target == OpenTarget.NEW_TAB


def test_source_node_created_when_missing(graph):
    _link(graph, 3, "https://origin.com", "https://dest.com")
    target = graph.record_navigation(3, "https://dest.com")

    source = graph.get_node(node_id(3, "https://origin.com"))
    assert source is not None
    assert source.parent_id is None
    assert target.parent_id == source.id


def test_metadata_precedence(graph):
    node = graph.record_navigation(1, "https://a.com")

    result = graph.update_node_metadata(node.id, PageMetadata(title="From tab"), MetadataSource.CHROME_API)
    assert result.success
    assert "title" in result.updated_fields

    graph.update_node_metadata(node.id, PageMetadata(title="From event"), MetadataSource.NAVIGATION_EVENT)
    assert node.title == "From tab"

    graph.update_node_metadata(node.id, PageMetadata(title="From page"), MetadataSource.CONTENT_SCRIPT)
    assert node.title == "From page"
    assert node.field_sources["title"] == MetadataSource.CONTENT_SCRIPT
    assert node.source == MetadataSource.CONTENT_SCRIPT


def test_low_priority_source_fills_empty_fields(graph):
    node = graph.record_navigation(1, "https://a.com")
    graph.update_node_metadata(node.id, PageMetadata(title="T"), MetadataSource.CONTENT_SCRIPT)
    result = graph.update_node_metadata(
        node.id, PageMetadata(title="Other", favicon="https://a.com/favicon.ico"), MetadataSource.NAVIGATION_EVENT
    )
    assert node.title == "T"
    assert node.favicon == "https://a.com/favicon.ico"
    assert result.updated_fields == ["favicon"]


def test_metadata_for_unknown_node(graph, caplog):
    with caplog.at_level(logging.WARNING):
        result = graph.update_node_metadata("9-nowhere.com-1", PageMetadata(title="x"))
    assert not result.success
    assert result.error
    assert "unknown node" in caplog.text


def test_close_nodes_for_tab_and_reopen(graph):
    graph.record_navigation(4, "https://a.com")
    graph.record_navigation(4, "https://b.com")
    graph.record_navigation(5, "https://c.com")

    assert graph.close_nodes_for_tab(4) == 2
    assert graph.get_node(node_id(4, "https://a.com")).is_closed
    assert not graph.get_node(node_id(5, "https://c.com")).is_closed
    assert graph.last_node_for_tab(4) is None

    reopened = graph.record_navigation(4, "https://a.com")
    assert not reopened.is_closed
    assert reopened.closed_at is None


def test_find_node_by_url_prefers_latest(graph, clock):
    graph.record_navigation(1, "https://a.com")
    clock.advance(1_000)
    later = graph.record_navigation(2, "https://a.com/")
    assert graph.find_node_by_url("https://a.com") is later


def test_session_graph_and_edge_stats(graph, clock):
    graph.record_navigation(1, "https://a.com")
    _link(graph, 1, "https://a.com", "https://b.com")
    graph.record_navigation(1, "https://b.com")
    clock.advance(10)
    _link(graph, 1, "https://a.com", "https://c.com", is_new_tab=True)
    graph.record_navigation(2, "https://c.com")

    session_id = graph.sessions.active_session_id
    view = graph.session_graph(session_id)
    assert view["root_ids"] == [node_id(1, "https://a.com")]
    assert len(view["records"]) == 3
    assert len(view["edges"]) == 2

    stats = graph.edge_stats(session_id)
    assert stats.total == 2
    assert stats.by_type == {"link_click": 2}
    assert stats.max_out_degree == 2
    assert stats.max_in_degree == 1


def test_session_statistics(graph):
    graph.record_navigation(1, "https://a.com")
    graph.record_navigation(1, "https://a.com/docs")
    graph.record_navigation(1, "https://b.com")
    session = graph.sessions.get_active_session()

    stats = graph.session_statistics(session)
    assert stats.total_nodes == 3
    assert stats.unique_domains == 2
    assert stats.top_domains[0] == {"domain": "a.com", "count": 2}
    assert stats.activity_by_hour == [{"hour": 10, "count": 3}]


def test_snapshot_round_trip(graph, clock):
    graph.record_navigation(1, "https://a.com")
    _link(graph, 1, "https://a.com", "https://b.com")
    graph.record_navigation(1, "https://b.com")
    graph.update_node_metadata(node_id(1, "https://b.com"), PageMetadata(title="B"), MetadataSource.CONTENT_SCRIPT)

    snapshot = graph.to_snapshot()
    restored = NavigationGraph(graph.sessions, clock=clock)
    restored.load_snapshot(snapshot)

    node = restored.get_node(node_id(1, "https://b.com"))
    assert node.title == "B"
    assert node.field_sources == {"title": MetadataSource.CONTENT_SCRIPT}
    assert node.navigation_type == NavigationType.LINK_CLICK
    assert len(restored.edges()) == 1
    assert restored.last_node_for_tab(1).id == node.id


def test_reset(graph):
    graph.record_navigation(1, "https://a.com")
    graph.reset()
    assert graph.nodes() == []
    assert graph.edges() == []


def test_empty_ledger_is_shared(clock):
    ledger = PendingNavigationLedger(ttl_ms=5_000, clock=clock)
    graph = NavigationGraph(SessionManager(clock=clock), ledger, clock=clock)
    assert graph.ledger is ledger

    graph.record_navigation(1, "https://a.com")
    ledger.record_link_click(node_id(1, "https://a.com"), "https://a.com", "https://b.com", tab_id=1)
    target = graph.record_navigation(1, "https://b.com")

    assert target.parent_id == node_id(1, "https://a.com")
    assert len(ledger) == 0

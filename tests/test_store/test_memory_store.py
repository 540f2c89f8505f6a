"""Tests for InMemoryStore."""

from navigraph.session.models import BrowsingSession
from navigraph.store.memory import InMemoryStore


def test_snapshot_is_copied():
    store = InMemoryStore()
    snapshot = {"nodes": [{"id": "1-a.com-x"}], "edges": []}
    store.save_graph_snapshot(snapshot)
    snapshot["nodes"].clear()

    loaded = store.load_graph_snapshot()
    assert loaded["nodes"] == [{"id": "1-a.com-x"}]
    loaded["edges"].append("mutated")
    assert store.load_graph_snapshot()["edges"] == []


def test_empty_store():
    store = InMemoryStore()
    assert store.load_graph_snapshot() is None
    assert store.load_sessions() == []


def test_sessions_oldest_first_and_detached():
    store = InMemoryStore()
    late = BrowsingSession(id="s2", title="Late", start_time=200)
    early = BrowsingSession(id="s1", title="Early", start_time=100, node_ids=["n1"])
    store.save_session(late)
    store.save_session(early)
    early.node_ids.append("n2")

    loaded = store.load_sessions()
    assert [s.id for s in loaded] == ["s1", "s2"]
    assert loaded[0].node_ids == ["n1"]


def test_delete_session():
    store = InMemoryStore()
    store.save_session(BrowsingSession(id="s1", title="x", start_time=1))
    store.delete_session("s1")
    store.delete_session("s1")
    assert store.load_sessions() == []

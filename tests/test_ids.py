"""Tests for identifier generation."""

import re
from datetime import datetime

from navigraph.ids import edge_id, hash_string, node_id, session_id


def test_hash_string_empty():
    assert hash_string("") == "0"


def test_hash_string_known_values():
    assert hash_string("a") == "2p"  # 97
    assert hash_string("ab") == "2e9"  # 97 * 31 + 98 = 3105


def test_hash_string_wraps_to_positive():
    value = hash_string("https://example.com/" + "x" * 500)
    assert value
    assert not value.startswith("-")
    assert int(value, 36) <= 2 ** 31


def test_node_id_is_deterministic():
    url = "https://news.example.org/story?id=4"
    assert node_id(3, url) == node_id(3, url)


def test_node_id_format_strips_www():
    nid = node_id(7, "https://www.example.com/a/")
    assert nid.startswith("7-example.com-")


def test_node_id_ignores_fragment_and_trailing_slash():
    assert node_id(1, "https://a.com/x/#frag") == node_id(1, "https://a.com/x")


def test_node_id_differs_per_tab():
    assert node_id(1, "https://a.com") != node_id(2, "https://a.com")


def test_node_id_unparseable_url():
    assert node_id(5, "not a url").startswith("5-unknown-")


def test_edge_id_format():
    assert edge_id("1-a.com-x", "1-b.com-y", 1700000000000) == "edge-1-a.com-x-1-b.com-y-1700000000000"


def test_session_id_format():
    sid = session_id(datetime(2024, 1, 2, 3, 4, 5))
    assert re.fullmatch(r"session-20240102-030405-\d{3}", sid)


def test_session_id_defaults_to_now():
    assert re.fullmatch(r"session-\d{8}-\d{6}-\d{3}", session_id())


def test_hash_string_accepts_lone_surrogate():
    # 0xD800 is hashed as a single code unit
    assert hash_string("\ud800") == "16o0"


def test_node_id_with_lone_surrogate():
    assert node_id(1, "https://a.com/\ud800").startswith("1-a.com-")

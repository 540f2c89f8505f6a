"""Tests for URL normalization and classification."""

import pytest

from navigraph.urls import (
    extract_domain,
    is_empty_tab_url,
    is_error_page,
    is_same_url,
    is_system_page,
    is_valid_http_url,
    normalize_url,
)


def test_normalize_strips_fragment_and_trailing_slash():
    assert normalize_url("https://example.com/path/#frag") == "https://example.com/path"


def test_normalize_keeps_root_slash():
    assert normalize_url("https://example.com") == "https://example.com/"
    assert normalize_url("https://example.com/") == "https://example.com/"


def test_normalize_keeps_query():
    assert normalize_url("https://example.com/s/?q=1&utm_source=x#top") == "https://example.com/s?q=1&utm_source=x"


def test_normalize_lowercases_host():
    assert normalize_url("https://Example.COM/Path") == "https://example.com/Path"


def test_normalize_unparseable_returns_raw():
    assert normalize_url("not a url#section") == "not a url"


@pytest.mark.parametrize("url", [
    "https://www.example.com/a/",
    "https://example.com/path/#frag",
    "http://example.com:8080/x/?y=1",
    "https://a.com/x//",
    "garbage",
    "",
])
def test_normalize_is_idempotent(url):
    once = normalize_url(url)
    assert normalize_url(once) == once


def test_is_same_url():
    assert is_same_url("https://a.com/x/", "https://a.com/x#y")
    assert not is_same_url("https://a.com/x", "https://a.com/y")


def test_system_pages():
    assert is_system_page("chrome://settings")
    assert is_system_page("about:blank")
    assert is_system_page("chrome-extension://abc/popup.html")
    assert not is_system_page("https://example.com")
    assert not is_system_page("")


def test_empty_tab_urls():
    assert is_empty_tab_url("")
    assert is_empty_tab_url("chrome://newtab/")
    assert is_empty_tab_url("about:blank")
    assert not is_empty_tab_url("https://example.com")


def test_error_pages():
    assert is_error_page("chrome-error://chromewebdata/")
    assert not is_error_page("https://example.com")


def test_extract_domain():
    assert extract_domain("https://WWW.Example.com/a") == "www.example.com"
    assert extract_domain("nonsense") == ""


def test_is_valid_http_url():
    assert is_valid_http_url("https://example.com")
    assert not is_valid_http_url("ftp://example.com")
    assert not is_valid_http_url("http://")


def test_normalize_strips_repeated_trailing_slashes():
    assert normalize_url("https://a.com/x//") == "https://a.com/x"
    assert normalize_url("https://a.com//") == "https://a.com/"

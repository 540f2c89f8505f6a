"""Tests for HTML metadata extraction."""

import pytest

pytest.importorskip("bs4")

from navigraph.navigation.metadata import extract_page_metadata  # noqa: E402

PAGE = """
<html>
  <head>
    <title> Example Docs </title>
    <meta name="description" content="Reference material">
    <meta name="keywords" content="docs, api">
    <link rel="shortcut icon" href="/static/icon.png">
  </head>
  <body><p>Hello</p></body>
</html>
"""


def test_extracts_basic_fields():
    metadata = extract_page_metadata(PAGE, page_url="https://example.com/docs/intro")
    assert metadata.title == "Example Docs"
    assert metadata.description == "Reference material"
    assert metadata.keywords == "docs, api"
    assert metadata.favicon == "https://example.com/static/icon.png"


def test_placeholder_title_falls_back_to_og_title():
    html = '<title>New Tab</title><meta property="og:title" content="Real Title">'
    assert extract_page_metadata(html).title == "Real Title"


def test_og_description_fallback_and_truncation():
    html = '<meta property="og:description" content="%s">' % ("x" * 40)
    metadata = extract_page_metadata(html, max_description_length=10)
    assert metadata.description == "x" * 10


def test_default_favicon_location():
    metadata = extract_page_metadata("<title>t</title>", page_url="https://site.org/a/b?c=1")
    assert metadata.favicon == "https://site.org/favicon.ico"


def test_empty_document():
    metadata = extract_page_metadata("")
    assert metadata.title is None
    assert metadata.favicon is None
    assert metadata.description is None

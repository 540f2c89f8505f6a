"""Extract page metadata from an HTML document."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlsplit

from navigraph.navigation.models import PageMetadata

logger = logging.getLogger(__name__)

_PLACEHOLDER_TITLES = {"new tab", "untitled"}


def extract_page_metadata(html: str, page_url: str = "", max_description_length: int = 500) -> PageMetadata:
    """Pull title, favicon, description and keywords out of raw HTML.

    Relative favicon links resolve against ``page_url``; without an icon
    link the site's ``/favicon.ico`` is assumed.
    """
    try:
        from bs4 import BeautifulSoup
    except ImportError:
        raise ImportError(
            "beautifulsoup4 is required for extract_page_metadata. "
            "Install with: pip install navigraph[metadata]"
        )

    soup = BeautifulSoup(html or "", "html.parser")

    title = None
    og_title = _meta_content(soup, property="og:title")
    if soup.title and soup.title.string:
        title = soup.title.string.strip()
    if (not title or title.lower() in _PLACEHOLDER_TITLES) and og_title:
        title = og_title

    description = _meta_content(soup, name="description") or _meta_content(soup, property="og:description")
    if description and len(description) > max_description_length:
        description = description[:max_description_length]

    return PageMetadata(
        title=title or None,
        favicon=_favicon(soup, page_url),
        description=description,
        keywords=_meta_content(soup, name="keywords"),
    )


def _meta_content(soup, **attrs) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _favicon(soup, page_url: str) -> str | None:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "icon" in {r.lower() for r in rel}:
            return urljoin(page_url, link["href"]) if page_url else link["href"]

    parts = urlsplit(page_url) if page_url else None
    if parts and parts.scheme in {"http", "https"} and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}/favicon.ico"
    return None

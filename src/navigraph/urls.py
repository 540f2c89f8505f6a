"""URL normalization and classification helpers."""

from __future__ import annotations

from urllib.parse import urlsplit

_SYSTEM_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "devtools://",
    "about:",
    "edge://",
    "brave://",
    "opera://",
    "vivaldi://",
    "view-source:",
    "file://",
    "data:",
    "blob:",
)

_EMPTY_TAB_URLS = {"about:blank", "chrome://newtab/", "edge://newtab/", "brave://newtab/"}

_ERROR_PREFIXES = ("chrome-error://", "chrome://crash", "chrome://kill")


def normalize_url(url: str) -> str:
    """Canonicalize a URL for node identity.

    Drops the fragment and trailing slashes on a non-root path. Query
    strings are kept as-is. Unparseable input comes back fragment-stripped.
    """
    url = (url or "").split("#", 1)[0]
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url

    path = parts.path.rstrip("/") or "/"
    query = f"?{parts.query}" if parts.query else ""
    return f"{parts.scheme}://{parts.netloc.lower()}{path}{query}"


def extract_domain(url: str) -> str:
    """Hostname of a URL, lowercased; empty string if it has none."""
    try:
        return (urlsplit(url or "").hostname or "").lower()
    except ValueError:
        return ""


def is_same_url(url1: str, url2: str) -> bool:
    return normalize_url(url1) == normalize_url(url2)


def is_system_page(url: str) -> bool:
    if not url:
        return False
    return url.startswith(_SYSTEM_PREFIXES)


def is_empty_tab_url(url: str) -> bool:
    return not url or url in _EMPTY_TAB_URLS or url.startswith("chrome://newtab")


def is_error_page(url: str) -> bool:
    return bool(url) and url.startswith(_ERROR_PREFIXES)


def is_valid_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url or "")
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.netloc)

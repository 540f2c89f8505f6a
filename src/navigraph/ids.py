"""Deterministic identifiers for nodes, edges and sessions."""

from __future__ import annotations

import random
from datetime import datetime
from urllib.parse import urlsplit

from navigraph.urls import normalize_url

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def hash_string(value: str) -> str:
    """32-bit rolling hash (h * 31 + code unit), base-36 encoded.

    Code units are UTF-16, matching ids already persisted by the browser
    extension.
    """
    data = value.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _node_domain(url: str) -> str:
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        hostname = None
    if not hostname:
        return "unknown"
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def node_id(tab_id: int, url: str) -> str:
    """Node id: ``{tab_id}-{domain}-{hash of normalized url}``."""
    return f"{tab_id}-{_node_domain(url)}-{hash_string(normalize_url(url))}"


def edge_id(source_id: str, target_id: str, timestamp: int) -> str:
    return f"edge-{source_id}-{target_id}-{timestamp}"


def session_id(now: datetime | None = None) -> str:
    """Human-sortable session id ``session-YYYYMMDD-HHMMSS-NNN`` in local time.

    The numeric suffix only separates sessions created within the same
    second.
    """
    now = now or datetime.now()
    suffix = f"{random.randint(0, 999):03d}"
    return f"session-{now:%Y%m%d}-{now:%H%M%S}-{suffix}"

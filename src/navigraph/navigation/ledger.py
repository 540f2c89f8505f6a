"""Short-lived store of navigation intents awaiting a committed navigation."""

from __future__ import annotations

import itertools
import logging
from typing import Any

from navigraph.clock import Clock, now_ms
from navigraph.navigation.models import NavigationType, PendingNavigation
from navigraph.urls import normalize_url

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 30_000

_Key = tuple[int | None, str]


class PendingNavigationLedger:
    """Intents keyed by (source tab, normalized target url), insertion-ordered.

    Expired entries are purged lazily on every ``record``/``consume`` call,
    so abandoned intents (a middle-click that never commits, say) cannot
    accumulate.
    """

    def __init__(self, ttl_ms: int = DEFAULT_TTL_MS, clock: Clock | None = None):
        self.ttl_ms = ttl_ms
        self._clock = clock or now_ms
        self._entries: dict[_Key, list[tuple[int, PendingNavigation]]] = {}
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return sum(len(items) for items in self._entries.values())

    def record(self, intent: PendingNavigation, now: int | None = None) -> PendingNavigation:
        """Store an intent; it stays matchable until ``now + ttl_ms``."""
        now = self._clock() if now is None else now
        self.purge_expired(now)

        if not intent.created_at:
            intent.created_at = now
        intent.expires_at = now + self.ttl_ms

        key = (intent.source_tab_id, normalize_url(intent.target_url))
        self._entries.setdefault(key, []).append((next(self._sequence), intent))
        logger.debug(
            "Recorded %s intent: tab=%s %s -> %s",
            intent.type.value, intent.source_tab_id, intent.source_url, intent.target_url,
        )
        return intent

    def consume(
        self,
        target_tab_id: int,
        committed_url: str,
        now: int | None = None,
    ) -> PendingNavigation | None:
        """Take the newest live intent matching a committed navigation.

        Returns None when nothing qualifies; the caller then records the
        navigation as a parentless entry.
        """
        now = self._clock() if now is None else now
        self.purge_expired(now)
        url = normalize_url(committed_url)

        candidates = [
            (intent.created_at, seq, key, intent)
            for key, items in self._entries.items()
            if key[1] == url
            for seq, intent in items
            if _eligible_for_tab(intent, target_tab_id)
        ]
        if not candidates:
            # A form action can differ from the url that finally commits.
            candidates = [
                (intent.created_at, seq, key, intent)
                for key, items in self._entries.items()
                if key[0] == target_tab_id
                for seq, intent in items
                if intent.type == NavigationType.FORM_SUBMIT
            ]
        if not candidates:
            return None

        _, seq, key, intent = max(candidates, key=lambda c: (c[0], c[1]))
        self._remove(key, seq)
        logger.debug("Matched %s intent for tab %s -> %s", intent.type.value, target_tab_id, url)
        return intent

    def purge_expired(self, now: int | None = None) -> int:
        """Drop intents whose window has passed; returns how many went."""
        now = self._clock() if now is None else now
        removed = 0
        for key in list(self._entries):
            items = self._entries[key]
            live = [(seq, intent) for seq, intent in items if intent.expires_at >= now]
            removed += len(items) - len(live)
            if live:
                self._entries[key] = live
            else:
                del self._entries[key]
        if removed:
            logger.debug("Discarded %d stale navigation intents", removed)
        return removed

    def _remove(self, key: _Key, seq: int) -> None:
        remaining = [(s, intent) for s, intent in self._entries.get(key, []) if s != seq]
        if remaining:
            self._entries[key] = remaining
        else:
            self._entries.pop(key, None)

    def clear_tab(self, tab_id: int) -> None:
        for key in [k for k in self._entries if k[0] == tab_id]:
            del self._entries[key]

    def reset(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        return {
            "pending": len(self),
            "targets": len({url for _, url in self._entries}),
            "tabs": len({tab for tab, _ in self._entries if tab is not None}),
        }

    # ---- Convenience recorders ----

    def record_link_click(
        self,
        source_node_id: str,
        source_url: str,
        target_url: str,
        tab_id: int | None = None,
        anchor_text: str = "",
        is_new_tab: bool = False,
        timestamp: int | None = None,
    ) -> PendingNavigation:
        return self.record(PendingNavigation(
            type=NavigationType.LINK_CLICK,
            source_node_id=source_node_id,
            source_url=source_url,
            target_url=target_url,
            data={"anchor_text": anchor_text, "is_new_tab": is_new_tab},
            created_at=timestamp or 0,
            source_tab_id=tab_id,
            is_new_tab=is_new_tab,
        ))

    def record_form_submit(
        self,
        tab_id: int,
        source_node_id: str,
        source_url: str,
        form_action: str,
        form_elements: list[str] | None = None,
        timestamp: int | None = None,
    ) -> PendingNavigation:
        return self.record(PendingNavigation(
            type=NavigationType.FORM_SUBMIT,
            source_node_id=source_node_id,
            source_url=source_url,
            target_url=form_action,
            data={"form_elements": list(form_elements or [])},
            created_at=timestamp or 0,
            source_tab_id=tab_id,
        ))

    def record_js_navigation(
        self,
        tab_id: int,
        source_node_id: str,
        source_url: str,
        target_url: str,
        timestamp: int | None = None,
    ) -> PendingNavigation:
        return self.record(PendingNavigation(
            type=NavigationType.JAVASCRIPT,
            source_node_id=source_node_id,
            source_url=source_url,
            target_url=target_url,
            created_at=timestamp or 0,
            source_tab_id=tab_id,
        ))

    def record_redirect(
        self,
        tab_id: int,
        source_url: str,
        target_url: str,
        source_node_id: str = "",
        status_code: int | None = None,
        timestamp: int | None = None,
    ) -> PendingNavigation:
        data: dict[str, Any] = {}
        if status_code is not None:
            data["status_code"] = status_code
        return self.record(PendingNavigation(
            type=NavigationType.REDIRECT,
            source_node_id=source_node_id,
            source_url=source_url,
            target_url=target_url,
            data=data or None,
            created_at=timestamp or 0,
            source_tab_id=tab_id,
        ))


def _eligible_for_tab(intent: PendingNavigation, tab_id: int) -> bool:
    return (
        intent.source_tab_id is None
        or intent.source_tab_id == tab_id
        or intent.target_tab_id == tab_id
        or intent.is_new_tab
    )

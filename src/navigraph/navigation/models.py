"""Data models for the navigation graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NavigationType(str, Enum):
    LINK_CLICK = "link_click"
    ADDRESS_BAR = "address_bar"
    FORM_SUBMIT = "form_submit"
    HISTORY_BACK = "history_back"
    HISTORY_FORWARD = "history_forward"
    RELOAD = "reload"
    REDIRECT = "redirect"
    JAVASCRIPT = "javascript"
    INITIAL = "initial"


class OpenTarget(str, Enum):
    SAME_TAB = "same_tab"
    NEW_TAB = "new_tab"
    NEW_WINDOW = "new_window"
    POPUP = "popup"
    FRAME = "frame"


class MetadataSource(str, Enum):
    """Where a piece of page metadata came from, lowest priority first."""

    NAVIGATION_EVENT = "navigation_event"
    CHROME_API = "chrome_api"
    CONTENT_SCRIPT = "content_script"

    @property
    def priority(self) -> int:
        return _METADATA_PRIORITY[self]


_METADATA_PRIORITY = {
    MetadataSource.NAVIGATION_EVENT: 1,
    MetadataSource.CHROME_API: 2,
    MetadataSource.CONTENT_SCRIPT: 3,
}


@dataclass
class PageMetadata:
    """Best-effort page details; any field may be missing."""

    title: str | None = None
    favicon: str | None = None
    description: str | None = None
    keywords: str | None = None
    referrer: str | None = None
    load_time: int | None = None


@dataclass
class NavNode:
    """A tracked page visit."""

    id: str
    tab_id: int
    url: str  # normalized
    navigation_type: NavigationType
    open_target: OpenTarget
    created_at: int  # epoch ms
    session_id: str | None = None
    parent_id: str | None = None
    source: MetadataSource = MetadataSource.CHROME_API
    title: str | None = None
    favicon: str | None = None
    description: str | None = None
    keywords: str | None = None
    referrer: str | None = None
    load_time: int | None = None
    last_visit: int = 0
    visit_count: int = 1
    frame_id: int = 0
    parent_frame_id: int = -1
    is_closed: bool = False
    closed_at: int | None = None
    # field name -> MetadataSource that last set it
    field_sources: dict[str, MetadataSource] = field(default_factory=dict)


@dataclass(frozen=True)
class NavEdge:
    """A directed transition between two visits. Never mutated."""

    id: str
    source_id: str
    target_id: str
    navigation_type: NavigationType
    timestamp: int
    session_id: str | None = None


@dataclass
class PendingNavigation:
    """A user action expected to produce a navigation soon."""

    type: NavigationType
    source_node_id: str
    source_url: str
    target_url: str
    data: dict[str, Any] | None = None
    created_at: int = 0
    expires_at: int = 0
    source_tab_id: int | None = None
    target_tab_id: int | None = None
    is_new_tab: bool = False


@dataclass
class NodeCreationOptions:
    tab_id: int
    url: str
    parent_id: str | None = None
    navigation_type: NavigationType = NavigationType.INITIAL
    open_target: OpenTarget = OpenTarget.SAME_TAB
    source: MetadataSource = MetadataSource.CHROME_API
    timestamp: int | None = None
    frame_id: int = 0
    parent_frame_id: int = -1
    metadata: PageMetadata | None = None


@dataclass
class UpdateNodeResult:
    success: bool
    updated_fields: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class EdgeStats:
    """Edge counts and degree figures for one session."""

    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    max_out_degree: int = 0
    max_in_degree: int = 0
    avg_out_degree: float = 0.0
    avg_in_degree: float = 0.0


@dataclass
class SessionStatistics:
    total_nodes: int
    unique_domains: int
    duration: int  # ms
    top_domains: list[dict] = field(default_factory=list)
    most_visited_pages: list[dict] = field(default_factory=list)
    activity_by_hour: list[dict] = field(default_factory=list)

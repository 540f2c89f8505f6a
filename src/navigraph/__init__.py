"""Navigation graph and browsing-session tracking for a single browser."""

from navigraph.config import TrackerConfig
from navigraph.navigation import (
    MetadataSource,
    NavEdge,
    NavigationGraph,
    NavigationType,
    NavNode,
    OpenTarget,
    PageMetadata,
    PendingNavigation,
    PendingNavigationLedger,
)
from navigraph.session import (
    BrowsingSession,
    SessionEvent,
    SessionEventBus,
    SessionEventType,
    SessionManager,
)
from navigraph.tracker import NavigationTracker, TabInfo, TabLookup

__all__ = [
    "TrackerConfig",
    "MetadataSource",
    "NavEdge",
    "NavigationGraph",
    "NavigationType",
    "NavNode",
    "OpenTarget",
    "PageMetadata",
    "PendingNavigation",
    "PendingNavigationLedger",
    "BrowsingSession",
    "SessionEvent",
    "SessionEventBus",
    "SessionEventType",
    "SessionManager",
    "NavigationTracker",
    "TabInfo",
    "TabLookup",
]

"""Navigation graph: nodes, edges and pending navigation intents."""

from navigraph.navigation.models import (
    EdgeStats,
    MetadataSource,
    NavEdge,
    NavigationType,
    NavNode,
    NodeCreationOptions,
    OpenTarget,
    PageMetadata,
    PendingNavigation,
    SessionStatistics,
    UpdateNodeResult,
)
from navigraph.navigation.ledger import PendingNavigationLedger
from navigraph.navigation.graph import NavigationGraph
from navigraph.navigation.transitions import classify_transition

__all__ = [
    "EdgeStats",
    "MetadataSource",
    "NavEdge",
    "NavigationType",
    "NavNode",
    "NodeCreationOptions",
    "OpenTarget",
    "PageMetadata",
    "PendingNavigation",
    "SessionStatistics",
    "UpdateNodeResult",
    "PendingNavigationLedger",
    "NavigationGraph",
    "classify_transition",
]

"""Browsing sessions: segmentation strategies and lifecycle events."""

from navigraph.session.models import BrowsingSession, SessionEvent, SessionEventType
from navigraph.session.events import SessionEventBus
from navigraph.session.strategies import (
    ActivitySessionStrategy,
    DailySessionStrategy,
    ManualSessionStrategy,
    SessionStrategy,
    SessionStrategyFactory,
)
from navigraph.session.manager import SessionManager

__all__ = [
    "BrowsingSession",
    "SessionEvent",
    "SessionEventType",
    "SessionEventBus",
    "SessionStrategy",
    "DailySessionStrategy",
    "ActivitySessionStrategy",
    "ManualSessionStrategy",
    "SessionStrategyFactory",
    "SessionManager",
]

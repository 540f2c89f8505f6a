"""Pluggable session boundary policies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from navigraph.clock import to_datetime, work_day
from navigraph.session.models import BrowsingSession

if TYPE_CHECKING:
    from navigraph.session.manager import SessionManager

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = "daily"


class SessionStrategy(ABC):
    """Decides when the active session ends and builds its successor."""

    strategy_type: str = ""

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @abstractmethod
    def should_create_new_session(
        self,
        last_activity_time: int,
        now: int,
        current_session: BrowsingSession | None,
    ) -> bool:
        """True when activity at ``now`` belongs in a fresh session."""
        ...

    def create_session(self, now: int | None = None) -> BrowsingSession:
        """Create, register and activate a session titled for ``now``."""
        now = self.manager.now() if now is None else now
        moment = to_datetime(now, self.manager.timezone)
        date_str = moment.strftime("%Y-%m-%d")
        time_str = moment.strftime("%H:%M:%S")
        return self.manager.create_session(
            title=self._title(date_str),
            description=f"Started {date_str} at {time_str}",
            metadata={"type": self.strategy_type, "date": now},
            now=now,
        )

    def _title(self, date_str: str) -> str:
        return f"Browsing session {date_str}"


class DailySessionStrategy(SessionStrategy):
    """One session per work day, rolled over only after a real break.

    Crossing midnight alone does not end a session: the idle gap must also
    exceed the manager's idle timeout.
    """

    strategy_type = "daily"

    def should_create_new_session(self, last_activity_time, now, current_session):
        if current_session is None:
            logger.debug("No active session; daily strategy starts one")
            return True

        zone = self.manager.timezone
        session_day = work_day(current_session.start_time, zone)
        current_day = work_day(now, zone)
        idle_ms = now - last_activity_time

        if session_day != current_day and idle_ms > self.manager.idle_timeout_ms:
            logger.info(
                "New work day %s after %.1f idle hours; rolling session over",
                current_day, idle_ms / 3_600_000,
            )
            return True
        if session_day != current_day:
            logger.debug(
                "Day changed to %s but only %d idle minutes; keeping session %s",
                current_day, idle_ms // 60_000, current_session.id,
            )
        return False

    def _title(self, date_str: str) -> str:
        return f"Daily session {date_str}"


class ActivitySessionStrategy(SessionStrategy):
    """Starts a new session after any idle gap longer than the timeout."""

    strategy_type = "activity"

    def should_create_new_session(self, last_activity_time, now, current_session):
        if current_session is None:
            return True
        timeout = self.manager.idle_timeout_ms
        return timeout > 0 and now - last_activity_time > timeout


class ManualSessionStrategy(SessionStrategy):
    """Never rolls over on its own; sessions are started explicitly."""

    strategy_type = "manual"

    def should_create_new_session(self, last_activity_time, now, current_session):
        return current_session is None


_BUILTIN_STRATEGIES: tuple[type[SessionStrategy], ...] = (
    DailySessionStrategy,
    ActivitySessionStrategy,
    ManualSessionStrategy,
)


class SessionStrategyFactory:
    """Registry of strategies by name with one active selection.

    Always yields a usable strategy: unknown names and an empty registry
    fall back to the daily policy.
    """

    def __init__(self, manager: SessionManager, active: str = DEFAULT_STRATEGY):
        self.manager = manager
        self.strategies: dict[str, SessionStrategy] = {}
        for strategy_cls in _BUILTIN_STRATEGIES:
            self.register(strategy_cls(manager))
        self.active_strategy_type = DEFAULT_STRATEGY
        self.set_active_strategy(active)

    def register(self, strategy: SessionStrategy) -> None:
        self.strategies[strategy.strategy_type] = strategy

    def set_active_strategy(self, strategy_type: str) -> None:
        if strategy_type == self.active_strategy_type:
            return
        if strategy_type not in self.strategies:
            logger.warning(
                "Unknown session strategy %r; keeping %r", strategy_type, self.active_strategy_type
            )
            return
        logger.info("Session strategy changed from %s to %s", self.active_strategy_type, strategy_type)
        self.active_strategy_type = strategy_type

    def get_active_strategy(self) -> SessionStrategy:
        strategy = self.strategies.get(self.active_strategy_type)
        if strategy is not None:
            return strategy

        logger.warning("Session strategy %r unavailable; using daily", self.active_strategy_type)
        if DEFAULT_STRATEGY not in self.strategies:
            self.register(DailySessionStrategy(self.manager))
        self.active_strategy_type = DEFAULT_STRATEGY
        return self.strategies[DEFAULT_STRATEGY]

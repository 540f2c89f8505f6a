"""Tracker settings with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from navigraph.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PENDING_TTL_SECONDS = 30
DEFAULT_IDLE_TIMEOUT_MINUTES = 30
DEFAULT_SESSION_STRATEGY = "daily"


@dataclass
class TrackerConfig:
    """Runtime settings for a NavigationTracker.

    Args:
        pending_ttl_ms: How long a recorded intent stays matchable.
        idle_timeout_ms: Idle gap that allows a session rollover.
        session_strategy: Name of the session boundary policy.
        timezone: IANA zone for work-day boundaries; None means local time.
        db_path: SQLite file for persistence; None keeps everything in memory.
    """

    pending_ttl_ms: int = DEFAULT_PENDING_TTL_SECONDS * 1000
    idle_timeout_ms: int = DEFAULT_IDLE_TIMEOUT_MINUTES * 60 * 1000
    session_strategy: str = DEFAULT_SESSION_STRATEGY
    timezone: str | None = None
    db_path: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TrackerConfig:
        """Build a config from NAVIGRAPH_* environment variables."""
        env = os.environ if environ is None else environ

        ttl_seconds = _read_number(env, "NAVIGRAPH_PENDING_TTL_SECONDS", DEFAULT_PENDING_TTL_SECONDS)
        idle_minutes = _read_number(env, "NAVIGRAPH_IDLE_TIMEOUT_MINUTES", DEFAULT_IDLE_TIMEOUT_MINUTES)
        db_path = env.get("NAVIGRAPH_DB_PATH") or None

        config = cls(
            pending_ttl_ms=int(ttl_seconds * 1000),
            idle_timeout_ms=int(idle_minutes * 60 * 1000),
            session_strategy=(env.get("NAVIGRAPH_SESSION_STRATEGY") or DEFAULT_SESSION_STRATEGY).strip().lower(),
            timezone=env.get("NAVIGRAPH_TIMEZONE") or None,
            db_path=Path(db_path).expanduser() if db_path else None,
        )
        logger.debug("Loaded tracker config: %s", config)
        return config


def _read_number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value

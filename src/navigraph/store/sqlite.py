"""SQLite-backed store with JSON payload columns."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict
from pathlib import Path
from typing import Any

from navigraph.clock import now_ms
from navigraph.exceptions import StoreReadError, StoreWriteError
from navigraph.session.models import BrowsingSession
from navigraph.store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS graph_snapshot (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    payload TEXT NOT NULL,
    saved_at INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    start_time INTEGER NOT NULL,
    end_time INTEGER,
    payload TEXT NOT NULL
);
"""


class SqliteStore(BaseStore):
    """Persist the graph snapshot and sessions in a single SQLite file.

    Args:
        db_path: Database file; created with its parent directory if missing.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        conn = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StoreWriteError(f"Cannot initialise store at {self.db_path}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def save_graph_snapshot(self, snapshot: dict[str, Any]) -> None:
        conn = None
        try:
            conn = self._connect()
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO graph_snapshot (id, payload, saved_at) VALUES (1, ?, ?)",
                    (json.dumps(snapshot), now_ms()),
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StoreWriteError(f"Failed to save graph snapshot: {e}") from e
        finally:
            if conn is not None:
                conn.close()
        logger.debug("Saved graph snapshot to %s", self.db_path)

    def load_graph_snapshot(self) -> dict[str, Any] | None:
        conn = None
        try:
            conn = self._connect()
            row = conn.execute("SELECT payload FROM graph_snapshot WHERE id = 1").fetchone()
            return json.loads(row["payload"]) if row else None
        except (sqlite3.Error, json.JSONDecodeError) as e:
            raise StoreReadError(f"Failed to load graph snapshot: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def save_session(self, session: BrowsingSession) -> None:
        conn = None
        try:
            conn = self._connect()
            with conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO sessions (id, start_time, end_time, payload)
                    VALUES (?, ?, ?, ?)
                    """,
                    (session.id, session.start_time, session.end_time, json.dumps(asdict(session))),
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StoreWriteError(f"Failed to save session {session.id}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def load_sessions(self) -> list[BrowsingSession]:
        conn = None
        try:
            conn = self._connect()
            rows = conn.execute("SELECT payload FROM sessions ORDER BY start_time ASC").fetchall()
        except sqlite3.Error as e:
            raise StoreReadError(f"Failed to load sessions: {e}") from e
        finally:
            if conn is not None:
                conn.close()

        sessions = []
        for row in rows:
            try:
                sessions.append(BrowsingSession.from_dict(json.loads(row["payload"])))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable session row: %s", e)
        return sessions

    def delete_session(self, session_id: str) -> None:
        conn = None
        try:
            conn = self._connect()
            with conn:
                conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to delete session {session_id}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

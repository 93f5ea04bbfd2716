"""
SQLite database initialization and connection management.

Single responsibility: own the connection and create the documents table.
Document reads/writes live in DocumentStore, entity mapping in the
repositories.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

# Default DB lives next to the repo root
DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "memory_todo.db"

SCHEMA_SQL = """
-- Documents -----------------------------------------------------------------
-- Every record of every collection, scoped by user. ``data`` holds the JSON
-- document; ``created_at`` is the write time used as a tiebreaker.
CREATE TABLE IF NOT EXISTS documents (
    user_id     TEXT    NOT NULL,
    collection  TEXT    NOT NULL,
    id          TEXT    NOT NULL,
    data        TEXT    NOT NULL,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    PRIMARY KEY (user_id, collection, id)
);

CREATE INDEX IF NOT EXISTS idx_documents_scope ON documents(user_id, collection);
"""


class Database:
    """Thin wrapper around a SQLite connection."""

    def __init__(self, db_path: Optional[Union[Path, str]] = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.conn: Optional[sqlite3.Connection] = None

    @property
    def connected(self) -> bool:
        return self.conn is not None

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> Optional[sqlite3.Connection]:
        """
        Open (or return existing) connection and ensure schema exists.

        Returns None when the database can't be opened; callers then run the
        store in offline mode.
        """
        if self.conn is not None:
            return self.conn
        logger.info("Connecting to SQLite at %s", self.db_path)
        try:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Database unavailable (%s), using offline mode", exc)
            return None
        self.conn = conn
        logger.info("Database schema ensured.")
        return self.conn

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed.")


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Opens the SQLite file and makes sure the single ``documents`` table
#   exists. If the file can't be opened the app keeps running offline.
#
# Key pieces:
#   - SCHEMA_SQL: one generic table instead of one table per entity. Each
#     row is a JSON document keyed by (user, collection, id), which mirrors
#     how a hosted document database lays data out per user.
#   - connect(): returns None on failure instead of raising. "Unreachable"
#     is detected once here; everything above checks store.available.
#
# Data flow:
#   App start -> Database.connect() -> DocumentStore(conn) -> repositories
#
# Interviewer-friendly talking points:
#   1. Document table vs normalized schema: the records are small and read
#      whole, so JSON blobs keep the repositories uniform.
#   2. WAL mode keeps readers from blocking the single writer.
#   3. Offline mode is a property of the connection, not of every call site.

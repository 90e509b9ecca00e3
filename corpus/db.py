"""
Database support functions for the paper corpus.
None of the services deal directly with SQLite; connection setup, schema and
transaction scoping live in this single file.

The corpus is one SQLite file holding three tables (papers, paper_pages,
paper_abstract_embeddings) plus an FTS5 index over the pages' derived
search vectors, kept in sync by triggers.
"""

from __future__ import annotations

import os
import sqlite3
import time
from contextlib import contextmanager
from typing import Any, Iterator

from loguru import logger

from config import settings

# -----------------------------------------------------------------------------
# SQLite configuration (from centralized settings)
DB_TIMEOUT = settings.db.timeout
DB_MAX_RETRIES = settings.db.max_retries
DB_RETRY_BASE_SLEEP = settings.db.retry_base_sleep

CORPUS_DB_FILE = settings.db.path

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS papers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        universal_id TEXT NOT NULL UNIQUE,
        title TEXT NOT NULL,
        abstract TEXT NOT NULL,
        publication_date TEXT NOT NULL,
        votes INTEGER NOT NULL DEFAULT 0 CHECK (votes >= 0)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_papers_votes ON papers(votes DESC)",
    "CREATE INDEX IF NOT EXISTS idx_papers_publication_date ON papers(publication_date)",
    """
    CREATE TABLE IF NOT EXISTS paper_pages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        paper_id INTEGER NOT NULL REFERENCES papers(id) ON DELETE CASCADE,
        page_number INTEGER NOT NULL,
        text TEXT NOT NULL,
        search_vector TEXT NOT NULL,
        UNIQUE (paper_id, page_number)
    )
    """,
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS paper_pages_fts USING fts5(
        search_vector,
        content='paper_pages',
        content_rowid='id',
        tokenize='porter unicode61'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS paper_pages_ai AFTER INSERT ON paper_pages BEGIN
        INSERT INTO paper_pages_fts(rowid, search_vector) VALUES (new.id, new.search_vector);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS paper_pages_ad AFTER DELETE ON paper_pages BEGIN
        INSERT INTO paper_pages_fts(paper_pages_fts, rowid, search_vector)
        VALUES ('delete', old.id, old.search_vector);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS paper_pages_au AFTER UPDATE OF search_vector ON paper_pages BEGIN
        INSERT INTO paper_pages_fts(paper_pages_fts, rowid, search_vector)
        VALUES ('delete', old.id, old.search_vector);
        INSERT INTO paper_pages_fts(rowid, search_vector) VALUES (new.id, new.search_vector);
    END
    """,
    """
    CREATE TABLE IF NOT EXISTS paper_abstract_embeddings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        paper_id INTEGER NOT NULL UNIQUE REFERENCES papers(id) ON DELETE CASCADE,
        embedding BLOB NOT NULL,
        embedding_half BLOB NOT NULL
    )
    """,
)


def _init_connection(conn: sqlite3.Connection, enable_wal: bool = True) -> None:
    """Initialize connection with settings for concurrency and integrity."""
    # - busy_timeout: how long SQLite waits when encountering a locked DB
    # - foreign_keys: required for ON DELETE CASCADE from papers
    # - journal_mode=WAL: concurrent readers + single writer
    conn.execute(f"PRAGMA busy_timeout={DB_TIMEOUT * 1000}")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA synchronous=NORMAL")
    if enable_wal:
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.OperationalError:
            # Another process may hold a lock; busy_timeout + retries still apply.
            pass


def _is_lock_error(exc: sqlite3.OperationalError) -> bool:
    msg = str(exc).lower()
    return "locked" in msg or "busy" in msg


def execute_with_retry(conn: sqlite3.Connection, sql: str, params: Any = ()) -> sqlite3.Cursor:
    """Execute a statement, retrying only when SQLite reports a lock."""
    for attempt in range(DB_MAX_RETRIES):
        try:
            return conn.execute(sql, params)
        except sqlite3.OperationalError as exc:
            if _is_lock_error(exc) and attempt < DB_MAX_RETRIES - 1:
                time.sleep(DB_RETRY_BASE_SLEEP * (2**attempt))
                continue
            raise
    raise sqlite3.OperationalError("database is locked")  # pragma: no cover


def open_connection(db_path: str) -> sqlite3.Connection:
    """Open a connection in autocommit mode; transactions are explicit."""
    if db_path != ":memory:":
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=DB_TIMEOUT, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    _init_connection(conn, enable_wal=db_path != ":memory:")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables, indexes and FTS triggers if missing."""
    with transaction(conn, mode="IMMEDIATE"):
        for stmt in SCHEMA_STATEMENTS:
            conn.execute(stmt)


@contextmanager
def transaction(conn: sqlite3.Connection, mode: str = "DEFERRED") -> Iterator[sqlite3.Connection]:
    """Execute multiple statements in a single SQLite transaction."""
    mode_u = (mode or "DEFERRED").upper()
    if mode_u not in ("DEFERRED", "IMMEDIATE", "EXCLUSIVE"):
        raise ValueError(f"Invalid transaction mode: {mode}")

    execute_with_retry(conn, f"BEGIN {mode_u}")
    try:
        yield conn
    except BaseException:
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.warning(f"Rollback failed: {exc}")
        raise
    else:
        execute_with_retry(conn, "COMMIT")


class StoreSession:
    """One connection and one open transaction, plus session-local settings.

    Session-local settings exist only on this object; nothing is written to
    the connection or to process-wide state, so concurrent sessions never
    observe each other's overrides.
    """

    KNOWN_SETTINGS = frozenset({"ann.ef_search"})

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._local: dict[str, Any] = {}

    def set_local(self, name: str, value: Any) -> None:
        """Override a setting until the session ends."""
        if name not in self.KNOWN_SETTINGS:
            raise KeyError(f"Unknown session setting: {name}")
        self._local[name] = value

    def get_local(self, name: str, default: Any = None) -> Any:
        return self._local.get(name, default)

    def clear_local(self) -> None:
        self._local.clear()

    def execute(self, sql: str, params: Any = ()) -> sqlite3.Cursor:
        return execute_with_retry(self.conn, sql, params)

"""Database schema and migration logic for wakeful SQLite storage.

Contains:
- Schema DDL (SCHEMA)
- Schema version tracking (SCHEMA_VERSION)
- Table allowlist (ALLOWED_TABLES, validate_table_name)
- Database initialization (init_db)
- Schema migration (migrate_schema)
"""

import logging
import sqlite3

logger = logging.getLogger(__name__)

# Schema version for migrations
SCHEMA_VERSION = 2  # v2: pinned column

# Allowed table names for SQL queries (prevents SQL injection via table names)
ALLOWED_TABLES = frozenset(
    {
        "observations",
        "soulfiles",
        "schema_version",
    }
)


def validate_table_name(table: str) -> str:
    """Validate table name against allowlist to prevent SQL injection.

    Raises:
        ValueError: If table name is not in allowlist
    """
    if table not in ALLOWED_TABLES:
        raise ValueError(f"Invalid table name: {table}")
    return table


SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Observations (append-mostly memory log)
CREATE TABLE IF NOT EXISTS observations (
    id TEXT PRIMARY KEY,
    agent_id TEXT NOT NULL,
    author TEXT NOT NULL,
    perspective TEXT NOT NULL,
    kind TEXT NOT NULL,
    content TEXT NOT NULL,
    salience INTEGER NOT NULL DEFAULT 0,
    -- Emotion intensities, 0-100 each
    emotion_intimacy INTEGER NOT NULL DEFAULT 0,
    emotion_conflict INTEGER NOT NULL DEFAULT 0,
    emotion_joy INTEGER NOT NULL DEFAULT 0,
    emotion_fear INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    last_accessed TEXT,
    deleted_at TEXT,
    -- NULL is treated as 'active'
    status TEXT DEFAULT 'active',
    superseded_by TEXT,
    pinned INTEGER NOT NULL DEFAULT 0,
    source_platform TEXT,
    source_ref TEXT
);
CREATE INDEX IF NOT EXISTS idx_observations_agent_created
    ON observations(agent_id, created_at);
CREATE INDEX IF NOT EXISTS idx_observations_agent_salience
    ON observations(agent_id, salience);
CREATE INDEX IF NOT EXISTS idx_observations_agent_status
    ON observations(agent_id, status, deleted_at);

-- Soulfiles and other small opaque documents
CREATE TABLE IF NOT EXISTS soulfiles (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def _current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] if row and row[0] is not None else 0


def _column_names(conn: sqlite3.Connection, table: str) -> set:
    validate_table_name(table)
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Bring an older database up to SCHEMA_VERSION."""
    version = _current_version(conn)
    if version >= SCHEMA_VERSION:
        return

    if "pinned" not in _column_names(conn, "observations"):
        logger.info("Migrating observations: adding pinned column")
        conn.execute("ALTER TABLE observations ADD COLUMN pinned INTEGER NOT NULL DEFAULT 0")

    conn.execute("INSERT OR REPLACE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
    logger.debug(f"Schema migrated from v{version} to v{SCHEMA_VERSION}")


def init_db(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if missing, then run migrations (idempotent)."""
    conn.executescript(SCHEMA)
    migrate_schema(conn)

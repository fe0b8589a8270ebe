"""Database initialization and schema management."""

import json
import logging
from typing import Any, Dict

from psycopg import Connection
from psycopg.errors import DatabaseError

from ..errors import StorageError
from ..ingestion.normalize import normalize_url
from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Links table
CREATE TABLE IF NOT EXISTS links (
    id TEXT PRIMARY KEY,
    url TEXT NOT NULL,
    domain TEXT NOT NULL,
    content TEXT,
    submitted_by TEXT,
    ts BIGINT NOT NULL,
    count INTEGER NOT NULL DEFAULT 1,
    meta TEXT
);

-- Lookup index keyed by normalized URL
CREATE TABLE IF NOT EXISTS link_index (
    link_id TEXT PRIMARY KEY REFERENCES links(id) ON DELETE CASCADE,
    normalized_url TEXT NOT NULL,
    domain TEXT,
    meta TEXT,
    ts BIGINT NOT NULL
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_links_ts ON links(ts DESC);
CREATE INDEX IF NOT EXISTS idx_links_url ON links(url);
CREATE INDEX IF NOT EXISTS idx_link_index_ts ON link_index(ts DESC);
"""

# Created after duplicate index rows have been folded together
UNIQUE_INDEX_SQL = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_link_index_normalized_url
    ON link_index(normalized_url)
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def _has_column(conn: Connection, table: str, column: str) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT 1 FROM information_schema.columns
            WHERE table_name = %s AND column_name = %s
            """,
            (table, column),
        )
        return cur.fetchone() is not None


def migrate_legacy_index(conn: Connection) -> int:
    """
    Fold a legacy ``link_index.url`` column into ``meta.url``.

    Returns:
        Number of rows rewritten
    """
    if not _has_column(conn, "link_index", "url"):
        return 0

    logger.info("Migrating link_index: moving url column into meta.url")
    migrated = 0
    with conn.cursor() as cur:
        cur.execute("SELECT link_id, url, meta FROM link_index")
        for row in cur.fetchall():
            try:
                meta = json.loads(row["meta"]) if row["meta"] else {}
            except ValueError:
                meta = {}
            if not isinstance(meta, dict):
                meta = {}
            if not meta.get("url") and row["url"]:
                meta["url"] = row["url"]
            cur.execute(
                "UPDATE link_index SET meta = %s WHERE link_id = %s",
                (json.dumps(meta), row["link_id"]),
            )
            migrated += 1
        cur.execute("ALTER TABLE link_index DROP COLUMN url")
    logger.info("link_index migration complete (%d rows)", migrated)
    return migrated


def fold_duplicate_links(conn: Connection) -> int:
    """
    Merge links that share a normalized URL into the most recent one.

    The survivor gets the summed count; the others are deleted along with
    their index rows.

    Returns:
        Number of links removed
    """
    removed = 0
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT normalized_url FROM link_index
            GROUP BY normalized_url
            HAVING COUNT(*) > 1
            """
        )
        keys = [row["normalized_url"] for row in cur.fetchall()]

        for nurl in keys:
            cur.execute(
                """
                SELECT l.id, l.count
                FROM link_index li
                JOIN links l ON l.id = li.link_id
                WHERE li.normalized_url = %s
                ORDER BY li.ts DESC, l.ts DESC
                """,
                (nurl,),
            )
            rows = cur.fetchall()
            survivor, losers = rows[0], rows[1:]
            total = sum(row["count"] or 1 for row in rows)
            loser_ids = [row["id"] for row in losers]

            logger.warning(
                "Folding %d duplicate links for %s into %s", len(losers), nurl, survivor["id"]
            )
            cur.execute("UPDATE links SET count = %s WHERE id = %s", (total, survivor["id"]))
            cur.execute("DELETE FROM links WHERE id = ANY(%s)", (loser_ids,))
            removed += len(losers)
    return removed


def reindex_links(conn: Connection) -> int:
    """
    Create index rows for links that have none.

    Returns:
        Number of index rows created
    """
    created = 0
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT l.id, l.url, l.domain, l.meta, l.ts
            FROM links l
            LEFT JOIN link_index li ON li.link_id = l.id
            WHERE li.link_id IS NULL
            ORDER BY l.ts
            """
        )
        for row in cur.fetchall():
            cur.execute(
                """
                INSERT INTO link_index (link_id, normalized_url, domain, meta, ts)
                SELECT %(id)s, %(nurl)s, %(domain)s, %(meta)s, %(ts)s
                WHERE NOT EXISTS (
                    SELECT 1 FROM link_index WHERE normalized_url = %(nurl)s
                )
                """,
                {
                    "id": row["id"],
                    "nurl": normalize_url(row["url"]),
                    "domain": row["domain"],
                    "meta": row["meta"],
                    "ts": row["ts"],
                },
            )
            created += cur.rowcount
    return created


def init_database(config: Dict[str, Any], reindex: bool = False) -> Dict[str, int]:
    """
    Initialize database schema and run migrations.

    Returns:
        Statistics dictionary
    """
    stats = {"migrated": 0, "reindexed": 0, "folded": 0}
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            stats["migrated"] = migrate_legacy_index(conn)
            if reindex:
                stats["reindexed"] = reindex_links(conn)
            stats["folded"] = fold_duplicate_links(conn)
            with conn.cursor() as cur:
                cur.execute(UNIQUE_INDEX_SQL)
            conn.commit()
            logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise StorageError("Failed to initialize database schema", details={"details": str(e)})
    return stats

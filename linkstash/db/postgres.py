"""Postgres-backed link storage."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from psycopg import Connection
from psycopg.errors import DatabaseError, UniqueViolation
from psycopg_pool import ConnectionPool

from ..errors import DuplicateLinkError, StorageError
from ..models import Link, LinkIndex, LinkMeta
from . import connection
from .base import LinkStore
from .connection import close_connection_pool, get_connection_pool

logger = logging.getLogger(__name__)

FEED_SELECT = """
    SELECT
        li.link_id AS id,
        li.domain,
        l.submitted_by,
        li.ts AS ts,
        l.count,
        COALESCE(NULLIF(NULLIF(l.meta, ''), '{}'), li.meta) AS meta
    FROM link_index li
    JOIN links l ON l.id = li.link_id
"""


def _row_to_link(row: Dict[str, Any]) -> Link:
    return Link(
        id=row["id"],
        url=row["url"],
        domain=row["domain"],
        content=row.get("content"),
        submitted_by=row.get("submitted_by"),
        ts=row["ts"],
        count=row["count"] or 1,
        meta=LinkMeta.from_json(row.get("meta")),
    )


class PostgresLinkStore(LinkStore):
    """Store links in Postgres through a psycopg connection pool."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Initialize with an open pool."""
        self.pool = pool

    @classmethod
    def from_config(cls, db_config: Dict[str, Any]) -> "PostgresLinkStore":
        return cls(get_connection_pool(db_config))

    @contextmanager
    def _connection(self) -> Generator[Connection, None, None]:
        """Pooled connection; commits on success, wraps driver errors."""
        try:
            with self.pool.connection() as conn:
                yield conn
        except UniqueViolation:
            raise
        except DatabaseError as e:
            logger.error("Database error: %s", e)
            raise StorageError("Database error", details={"details": str(e)})

    def find_by_normalized_url(self, normalized_url: str) -> Optional[Link]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT l.id, l.url, l.domain, l.content, l.submitted_by,
                           l.ts, l.count, l.meta
                    FROM link_index li
                    JOIN links l ON l.id = li.link_id
                    WHERE li.normalized_url = %s
                    LIMIT 1
                    """,
                    (normalized_url,),
                )
                row = cur.fetchone()
        return _row_to_link(row) if row else None

    def insert_link(self, link: Link, index: LinkIndex) -> None:
        try:
            with self._connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(
                            """
                            INSERT INTO links (
                                id, url, domain, content, submitted_by, ts, count, meta
                            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                            """,
                            (
                                link.id,
                                link.url,
                                link.domain,
                                link.content,
                                link.submitted_by,
                                link.ts,
                                link.count,
                                link.meta.to_json(),
                            ),
                        )
                        cur.execute(
                            """
                            INSERT INTO link_index (link_id, normalized_url, domain, meta, ts)
                            VALUES (%s, %s, %s, %s, %s)
                            """,
                            (
                                index.link_id,
                                index.normalized_url,
                                index.domain,
                                index.meta.to_json(),
                                index.ts,
                            ),
                        )
        except UniqueViolation:
            raise DuplicateLinkError(index.normalized_url)

    def merge_link(self, link: Link) -> Optional[int]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE links
                    SET count = count + 1, ts = %s, meta = %s, content = %s, submitted_by = %s
                    WHERE id = %s
                    RETURNING count
                    """,
                    (
                        link.ts,
                        link.meta.to_json(),
                        link.content,
                        link.submitted_by,
                        link.id,
                    ),
                )
                row = cur.fetchone()
        return row["count"] if row else None

    def upsert_index(self, index: LinkIndex) -> None:
        try:
            with self._connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO link_index (link_id, normalized_url, domain, meta, ts)
                        VALUES (%s, %s, %s, %s, %s)
                        ON CONFLICT (link_id) DO UPDATE SET
                            normalized_url = EXCLUDED.normalized_url,
                            domain = EXCLUDED.domain,
                            meta = EXCLUDED.meta,
                            ts = EXCLUDED.ts
                        """,
                        (
                            index.link_id,
                            index.normalized_url,
                            index.domain,
                            index.meta.to_json(),
                            index.ts,
                        ),
                    )
        except UniqueViolation:
            raise DuplicateLinkError(index.normalized_url)

    def delete_link(self, link_id: str) -> bool:
        with self._connection() as conn:
            with conn.cursor() as cur:
                # link_index rows go with it (ON DELETE CASCADE)
                cur.execute("DELETE FROM links WHERE id = %s", (link_id,))
                return cur.rowcount > 0

    def get_link(self, link_id: str) -> Optional[Link]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT * FROM links WHERE id = %s", (link_id,))
                row = cur.fetchone()
        return _row_to_link(row) if row else None

    def get_content(self, link_id: str) -> Optional[str]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT content FROM links WHERE id = %s", (link_id,))
                row = cur.fetchone()
        if row is None:
            return None
        return row["content"] or ""

    def list_links(
        self,
        start_ts: Optional[int] = None,
        end_ts: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = FEED_SELECT
        clauses = []
        params: List[Any] = []
        if start_ts is not None:
            clauses.append("li.ts >= %s")
            params.append(start_ts)
        if end_ts is not None:
            clauses.append("li.ts < %s")
            params.append(end_ts)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY li.ts DESC"

        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()

        for row in rows:
            row["meta"] = LinkMeta.from_json(row["meta"]).to_dict()
        return rows

    def latest_ts(self) -> Optional[int]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT MAX(ts) AS max_ts FROM link_index")
                row = cur.fetchone()
        return row["max_ts"] if row else None

    def close(self) -> None:
        if self.pool is connection._connection_pool:
            close_connection_pool()
        else:
            self.pool.close()

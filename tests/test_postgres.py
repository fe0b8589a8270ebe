"""Tests for the Postgres store.

Skipped unless ``LINKSTASH_TEST_DSN`` points at a database the tests may
use. Everything runs inside a throwaway ``linkstash_test`` schema.
"""

import os

import psycopg
import pytest
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from linkstash.db import PostgresLinkStore, fold_duplicate_links
from linkstash.db.init import SCHEMA_SQL, UNIQUE_INDEX_SQL
from linkstash.errors import DuplicateLinkError
from linkstash.ingestion.engine import IngestionEngine
from linkstash.models import Link, LinkIndex, LinkMeta

from .conftest import BASE_TS

DSN = os.environ.get("LINKSTASH_TEST_DSN")
SCHEMA = "linkstash_test"

pytestmark = pytest.mark.skipif(not DSN, reason="LINKSTASH_TEST_DSN not set")


def reset_schema():
    with psycopg.connect(DSN, autocommit=True) as conn:
        conn.execute(f"DROP SCHEMA IF EXISTS {SCHEMA} CASCADE")
        conn.execute(f"CREATE SCHEMA {SCHEMA}")


@pytest.fixture
def pool():
    reset_schema()
    pool = ConnectionPool(
        DSN,
        min_size=1,
        max_size=4,
        kwargs={"row_factory": dict_row, "options": f"-c search_path={SCHEMA}"},
        open=True,
    )
    with pool.connection() as conn:
        conn.execute(SCHEMA_SQL)
    yield pool
    pool.close()
    with psycopg.connect(DSN, autocommit=True) as conn:
        conn.execute(f"DROP SCHEMA IF EXISTS {SCHEMA} CASCADE")


@pytest.fixture
def pg_store(pool):
    with pool.connection() as conn:
        conn.execute(UNIQUE_INDEX_SQL)
    return PostgresLinkStore(pool)


def make_link(link_id, url="https://a.com/x", ts=BASE_TS, count=1, **meta):
    return Link(
        id=link_id,
        url=url,
        domain="a.com",
        content=f"body of {link_id}",
        ts=ts,
        count=count,
        meta=LinkMeta.model_validate({"url": url, **meta}),
    )


def test_engine_round_trip(pg_store, clock):
    engine = IngestionEngine(pg_store, clock=clock)
    engine.ingest([{"url": "https://a.com/x", "body": "v1", "frontmatter": {"title": "T", "tags": "a b"}}])
    engine.ingest([{"url": "https://a.com/x/#top"}])

    link = pg_store.find_by_normalized_url("https://a.com/x")
    assert link.count == 2
    assert link.content == "v1"
    assert link.meta.tags == ["a", "b"]

    rows = pg_store.list_links()
    assert len(rows) == 1
    assert rows[0]["count"] == 2
    assert rows[0]["meta"]["title"] == "T"
    assert pg_store.latest_ts() == rows[0]["ts"]
    assert pg_store.get_content(link.id) == "v1"


def test_insert_collision_raises_duplicate(pg_store):
    pg_store.insert_link(make_link("one"), LinkIndex.for_link(make_link("one"), "https://a.com/x"))

    with pytest.raises(DuplicateLinkError):
        pg_store.insert_link(make_link("two"), LinkIndex.for_link(make_link("two"), "https://a.com/x"))

    assert pg_store.get_link("two") is None
    assert pg_store.find_by_normalized_url("https://a.com/x").id == "one"


def test_merge_increments_stored_count(pg_store):
    link = make_link("one")
    pg_store.insert_link(link, LinkIndex.for_link(link, "https://a.com/x"))

    # Both writers hold the same stale copy with count 1
    assert pg_store.merge_link(link) == 2
    assert pg_store.merge_link(link) == 3
    assert pg_store.get_link("one").count == 3
    assert pg_store.merge_link(make_link("missing")) is None


def test_upsert_index_replaces_row(pg_store):
    link = make_link("one")
    pg_store.insert_link(link, LinkIndex.for_link(link, "https://a.com/x"))

    moved = LinkIndex(link_id="one", normalized_url="https://a.com/y", domain="b.com", ts=BASE_TS + 5)
    pg_store.upsert_index(moved)

    assert pg_store.find_by_normalized_url("https://a.com/x") is None
    assert pg_store.find_by_normalized_url("https://a.com/y").id == "one"
    assert pg_store.latest_ts() == BASE_TS + 5


@pytest.mark.parametrize("empty_meta", ["{}", ""])
def test_feed_falls_back_to_index_meta(pg_store, pool, empty_meta):
    link = make_link("one", title="From index")
    pg_store.insert_link(link, LinkIndex.for_link(link, "https://a.com/x"))
    with pool.connection() as conn:
        conn.execute("UPDATE links SET meta = %s WHERE id = %s", (empty_meta, "one"))

    assert pg_store.list_links()[0]["meta"]["title"] == "From index"


def test_delete_cascades_to_index(pg_store):
    link = make_link("one")
    pg_store.insert_link(link, LinkIndex.for_link(link, "https://a.com/x"))

    assert pg_store.delete_link("one") is True
    assert pg_store.find_by_normalized_url("https://a.com/x") is None
    assert pg_store.list_links() == []
    assert pg_store.delete_link("one") is False


def test_duplicates_are_folded_before_unique_index(pool):
    store = PostgresLinkStore(pool)
    for link_id, ts, count in [("old", BASE_TS, 2), ("new", BASE_TS + 10, 3), ("mid", BASE_TS + 5, 1)]:
        link = make_link(link_id, ts=ts, count=count)
        store.insert_link(link, LinkIndex.for_link(link, "https://a.com/x"))
    other = make_link("other", url="https://a.com/z")
    store.insert_link(other, LinkIndex.for_link(other, "https://a.com/z"))

    with pool.connection() as conn:
        assert fold_duplicate_links(conn) == 2
        conn.execute(UNIQUE_INDEX_SQL)

    survivor = store.find_by_normalized_url("https://a.com/x")
    assert survivor.id == "new"
    assert survivor.count == 6
    assert store.get_link("old") is None
    assert store.get_link("mid") is None
    assert store.get_link("other").count == 1

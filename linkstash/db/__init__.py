"""Database management for Linkstash."""

from .base import LinkStore
from .connection import close_connection_pool, get_connection, get_connection_pool
from .init import (
    fold_duplicate_links,
    init_database,
    migrate_legacy_index,
    reindex_links,
    validate_connection,
)
from .memory import MemoryLinkStore
from .postgres import PostgresLinkStore

__all__ = [
    "LinkStore",
    "MemoryLinkStore",
    "PostgresLinkStore",
    "close_connection_pool",
    "fold_duplicate_links",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "migrate_legacy_index",
    "reindex_links",
    "validate_connection",
]

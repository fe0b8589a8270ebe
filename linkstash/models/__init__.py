"""Data models for Linkstash."""

from .link import Link, LinkIndex
from .meta import PRIVATE_META_KEYS, LinkMeta

__all__ = ["Link", "LinkIndex", "LinkMeta", "PRIVATE_META_KEYS"]

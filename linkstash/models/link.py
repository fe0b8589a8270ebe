"""Link and LinkIndex models."""

from typing import Optional

from pydantic import Field

from .base import DBModel
from .meta import LinkMeta


class Link(DBModel):
    """A stored article/URL record."""

    id: str = Field(..., description="Opaque unique identifier")
    url: str = Field(..., description="URL exactly as scraped")
    domain: str = Field(..., description="Hostname parsed from url")
    content: Optional[str] = Field(None, description="Scraped body (markdown)")
    submitted_by: Optional[str] = Field(None, description="Last known submitter")
    ts: int = Field(..., description="Last-touched time, ms since epoch")
    count: int = Field(1, description="Vote/occurrence counter", ge=1)
    meta: LinkMeta = Field(default_factory=LinkMeta, description="Free-form metadata")


class LinkIndex(DBModel):
    """Denormalized lookup row keyed by normalized URL."""

    link_id: str = Field(..., description="Foreign key to links table")
    normalized_url: str = Field(..., description="Deduplication key")
    domain: Optional[str] = Field(None, description="Copy of Link.domain")
    meta: LinkMeta = Field(default_factory=LinkMeta, description="Copy of Link.meta")
    ts: int = Field(..., description="Copy of Link.ts")

    @classmethod
    def for_link(cls, link: Link, normalized_url: str) -> "LinkIndex":
        return cls(
            link_id=link.id,
            normalized_url=normalized_url,
            domain=link.domain,
            meta=link.meta.model_copy(deep=True),
            ts=link.ts,
        )

"""Data models for ingestion."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class ScrapedItem(BaseModel):
    """One record returned by the scrape service."""

    url: str = Field(..., description="Resolved article URL")
    body: Optional[str] = Field(None, description="Extracted article body (markdown)")
    frontmatter: Optional[Dict[str, Any]] = Field(None, description="Extracted metadata")

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("url must be a non-empty string")
        return v

    @field_validator("body", mode="before")
    @classmethod
    def coerce_body(cls, v: Any) -> Optional[str]:
        """Numbers become text; any other non-string body is dropped."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None

    @field_validator("frontmatter", mode="before")
    @classmethod
    def mapping_or_none(cls, v: Any) -> Optional[Dict[str, Any]]:
        return v if isinstance(v, dict) else None


class SubmissionContext(BaseModel):
    """Who submitted a link and where."""

    submitter: Optional[str] = Field(None, description="Submitter identity")
    room_id: Optional[str] = Field(None, description="Room the link was shared in")
    room_comment: Optional[str] = Field(None, description="Comment left with the link")


class Submission(BaseModel):
    """A single user-submitted URL plus its context."""

    url: str = Field(..., description="Submitted URL")
    context: SubmissionContext = Field(default_factory=SubmissionContext)


class IngestStats(BaseModel):
    """Outcome of one ingestion batch."""

    total: int = Field(0, description="Items received")
    inserted: int = Field(0, description="New links created")
    merged: int = Field(0, description="Existing links re-submitted")
    skipped: int = Field(0, description="Items dropped as invalid")
    link_ids: List[str] = Field(default_factory=list, description="Links touched, in order")

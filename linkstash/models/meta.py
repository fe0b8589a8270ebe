"""Link metadata model."""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..ingestion.tags import split_tags

# Keys that identify who shared a link; never exposed publicly
PRIVATE_META_KEYS = ("submittedBy", "roomId", "submitted_by", "room_id")


class LinkMeta(BaseModel):
    """Typed view over the free-form metadata mapping.

    Known keys are validated; anything else the scraper sends in its
    frontmatter is kept as an extra field and round-trips unchanged.
    """

    title: Optional[str] = Field(None, description="Article title")
    url: Optional[str] = Field(None, description="Canonical scraped URL")
    tags: Optional[List[str]] = Field(None, description="Lowercase tags")
    submitted_by: Optional[str] = Field(None, alias="submittedBy", description="Last submitter")
    room_id: Optional[str] = Field(None, alias="roomId", description="Room the link was shared in")
    room_comment: Optional[str] = Field(None, alias="roomComment", description="Comment left with the link")

    class Config:
        """Pydantic config."""

        extra = "allow"
        populate_by_name = True
        validate_assignment = True

    @field_validator("title", "url", "submitted_by", "room_id", "room_comment", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Optional[str]:
        """Frontmatter values are not always strings."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (list, tuple)):
            return ", ".join(str(x) for x in v)
        return str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        return split_tags(v, dedupe=False)

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "LinkMeta":
        """Parse a stored JSON blob; unreadable blobs become empty meta."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Mapping with camelCase keys.

        Unset known fields are dropped; extra keys are kept exactly as
        received, null values included.
        """
        data = self.model_dump(by_alias=True, exclude_none=True)
        for key, value in (self.model_extra or {}).items():
            data[key] = value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def is_empty(self) -> bool:
        return not self.to_dict()

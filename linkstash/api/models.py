"""Request bodies accepted by the HTTP API."""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


class LinkField(BaseModel):
    """Object form of the submitted link."""

    url: Optional[str] = Field(None, description="Submitted URL")
    submitted_by: Optional[str] = Field(None, alias="submittedBy", description="Submitter identity")

    class Config:
        """Pydantic config."""

        populate_by_name = True


class RoomField(BaseModel):
    """Room context; both short and prefixed key spellings are accepted."""

    id: Optional[str] = None
    room_id: Optional[str] = None
    comment: Optional[str] = None
    room_comment: Optional[str] = None

    @field_validator("id", "room_id", "comment", "room_comment", mode="before")
    @classmethod
    def numbers_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def resolved_id(self) -> Optional[str]:
        return self.id or self.room_id

    @property
    def resolved_comment(self) -> Optional[str]:
        return self.comment or self.room_comment


class AddRequest(BaseModel):
    """Body of ``POST /api/add``."""

    link: Union[str, LinkField]
    room: Optional[RoomField] = None

    @property
    def url(self) -> Optional[str]:
        if isinstance(self.link, str):
            return self.link
        return self.link.url

    @property
    def submitter(self) -> Optional[str]:
        if isinstance(self.link, LinkField):
            return self.link.submitted_by
        return None


class DeleteRequest(BaseModel):
    """Body of ``DELETE /api/admin/link``."""

    id: Optional[str] = None

"""
Note schemas.

Content is an opaque payload here; only the access configuration and
the lease are interpreted by the service.
"""

import uuid
from datetime import datetime
from typing import Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.note import AccessLevel, EditMode


class NoteCreate(BaseModel):
    """Note creation request schema."""

    title: str = Field(min_length=1, max_length=200, description="Note title")
    content: str = Field(default="", description="Note content")
    access_level: AccessLevel = Field(default=AccessLevel.PRIVATE, description="View tier")
    edit_mode: EditMode = Field(default=EditMode.EVERYONE, description="Edit policy")
    view_access_list: Set[uuid.UUID] = Field(default_factory=set, max_length=500)
    edit_allow_list: Set[uuid.UUID] = Field(default_factory=set, max_length=500)
    edit_deny_list: Set[uuid.UUID] = Field(default_factory=set, max_length=500)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if len(v.strip()) == 0:
            raise ValueError("Title cannot be empty")
        return v.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Q4 planning",
                "content": "## Agenda\n\n1. Review Q3\n2. Set Q4 objectives",
                "access_level": "shared",
                "edit_mode": "access_list",
                "view_access_list": ["1b4e28ba-2fa1-11d2-883f-0016d3cca427"],
                "edit_allow_list": ["1b4e28ba-2fa1-11d2-883f-0016d3cca427"],
            }
        }
    )


class NoteUpdate(BaseModel):
    """Note content update request schema."""

    title: Optional[str] = Field(
        default=None, min_length=1, max_length=200, description="Note title"
    )
    content: Optional[str] = Field(default=None, description="Note content")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and len(v.strip()) == 0:
            raise ValueError("Title cannot be empty")
        return v.strip() if v is not None else v

    def changes(self) -> dict:
        return {key: value for key, value in self.model_dump().items() if value is not None}


class NoteResponse(BaseModel):
    """Note as returned to a caller allowed to view it."""

    id: uuid.UUID
    title: str
    content: str
    creator_id: uuid.UUID
    org_id: uuid.UUID
    access_level: AccessLevel
    edit_mode: EditMode
    view_access_list: Set[uuid.UUID] = Field(default_factory=set)
    edit_allow_list: Set[uuid.UUID] = Field(default_factory=set)
    edit_deny_list: Set[uuid.UUID] = Field(default_factory=set)
    is_owned: bool
    can_edit: bool
    lock_holder_id: Optional[uuid.UUID] = None
    lock_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

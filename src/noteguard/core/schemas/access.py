"""
Caller identity and access decision schemas.
"""

import uuid
from enum import Enum
from typing import Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.note import AccessLevel, EditMode


class Role(str, Enum):
    """Role of the caller inside its organization."""

    ADMIN = "admin"
    MEMBER = "member"


class Caller(BaseModel):
    """Authenticated identity as issued by the identity provider."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    org_id: uuid.UUID
    role: Role = Role.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AccessReason(str, Enum):
    """Why a view/edit decision came out the way it did."""

    ORG_MISMATCH = "org_mismatch"
    ADMIN = "admin"
    PUBLIC = "public"
    CREATOR = "creator"
    VIEW_LIST = "view_list"
    NOT_LISTED = "not_listed"
    CANNOT_VIEW = "cannot_view"
    EDIT_LOCKED = "edit_locked"
    EVERYONE = "everyone"
    ALLOW_LIST = "allow_list"
    DENY_LIST = "deny_list"


class AccessDecision(BaseModel):
    """A boolean decision plus the rule that produced it."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: AccessReason

    def __bool__(self) -> bool:
        return self.allowed


class AccessCheckResponse(BaseModel):
    """View/edit eligibility of the current caller for one note."""

    note_id: uuid.UUID
    can_view: bool
    can_edit: bool
    view_reason: AccessReason
    edit_reason: AccessReason


class AccessSettingsUpdate(BaseModel):
    """Change a note's access configuration (creator or admin only)."""

    access_level: Optional[AccessLevel] = Field(default=None, description="View tier")
    edit_mode: Optional[EditMode] = Field(default=None, description="Edit policy")
    view_access_list: Optional[Set[uuid.UUID]] = Field(
        default=None, max_length=500, description="Users allowed to view a shared note"
    )
    edit_allow_list: Optional[Set[uuid.UUID]] = Field(
        default=None, max_length=500, description="Users allowed to edit in access_list mode"
    )
    edit_deny_list: Optional[Set[uuid.UUID]] = Field(
        default=None, max_length=500, description="Users blocked from editing in deny_list mode"
    )

    @model_validator(mode="after")
    def require_some_change(self):
        if not self.model_fields_set:
            raise ValueError("At least one access setting must be provided")
        return self

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        return {
            key: getattr(self, key)
            for key in self.model_fields_set
            if getattr(self, key) is not None
        }

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_level": "shared",
                "edit_mode": "deny_list",
                "view_access_list": ["1b4e28ba-2fa1-11d2-883f-0016d3cca427"],
                "edit_deny_list": ["1b4e28ba-2fa1-11d2-883f-0016d3cca427"],
            }
        }
    )

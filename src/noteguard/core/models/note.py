# Note model - access configuration and edit lease live on the note row
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import FrozenSet, Optional

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, as_utc
from .types import GUID, UUIDSetType


class AccessLevel(str, Enum):
    """Who may view a note."""

    PUBLIC = "public"
    SHARED = "shared"
    PRIVATE = "private"


class EditMode(str, Enum):
    """Who may change a note, independent of its access level."""

    EVERYONE = "everyone"
    ACCESS_LIST = "access_list"
    DENY_LIST = "deny_list"
    NO_ONE = "no_one"


class Note(BaseModel):
    """Note with its access configuration and current edit lease."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    creator_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    org_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)

    access_level: Mapped[AccessLevel] = mapped_column(
        String(20), default=AccessLevel.PRIVATE, nullable=False
    )
    edit_mode: Mapped[EditMode] = mapped_column(
        String(20), default=EditMode.EVERYONE, nullable=False
    )

    view_access_list: Mapped[FrozenSet[uuid.UUID]] = mapped_column(
        UUIDSetType, default=frozenset, nullable=False
    )
    # only read when edit_mode == access_list
    edit_allow_list: Mapped[FrozenSet[uuid.UUID]] = mapped_column(
        UUIDSetType, default=frozenset, nullable=False
    )
    # only read when edit_mode == deny_list
    edit_deny_list: Mapped[FrozenSet[uuid.UUID]] = mapped_column(
        UUIDSetType, default=frozenset, nullable=False
    )

    # edit lease; both columns are written together
    lock_holder_id: Mapped[Optional[uuid.UUID]] = mapped_column(GUID(), nullable=True)
    lock_acquired_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint("length(title) <= 200", name="ck_notes_title_len"),
        CheckConstraint(
            "access_level IN ('public', 'shared', 'private')", name="ck_notes_access_level"
        ),
        CheckConstraint(
            "edit_mode IN ('everyone', 'access_list', 'deny_list', 'no_one')",
            name="ck_notes_edit_mode",
        ),
        CheckConstraint(
            "(lock_holder_id IS NULL) = (lock_acquired_at IS NULL)",
            name="ck_notes_lock_pair",
        ),
        Index("idx_notes_org_id", "org_id"),
        Index("idx_notes_creator_id", "creator_id"),
    )

    def __init__(self, **kwargs):
        # Column defaults only apply at flush; notes built in memory
        # (policy checks, tests) need usable values straight away.
        kwargs.setdefault("content", "")
        kwargs.setdefault("access_level", AccessLevel.PRIVATE)
        kwargs.setdefault("edit_mode", EditMode.EVERYONE)
        for field in ("view_access_list", "edit_allow_list", "edit_deny_list"):
            kwargs[field] = frozenset(kwargs.get(field) or ())
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        truncated = self.title if len(self.title) <= 30 else (self.title[:30] + "...")
        return f"<Note(title='{truncated}', creator_id={self.creator_id})>"

    @property
    def is_locked(self) -> bool:
        """True if a lease row is present, expired or not."""
        return self.lock_holder_id is not None

    def lock_expires_at(self, ttl: timedelta) -> Optional[datetime]:
        """Expiry of the stored lease, or None when unlocked."""
        acquired_at = as_utc(self.lock_acquired_at)
        if acquired_at is None:
            return None
        return acquired_at + ttl

    def is_created_by(self, user_id: uuid.UUID) -> bool:
        return self.creator_id == user_id

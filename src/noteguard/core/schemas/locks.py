"""
Edit lease schemas.

LockState is the (holder, acquired_at) tuple the record store compares
and swaps. The remaining models are the typed outcomes returned by the
lock manager; Conflict/Rejected/LeaseLost are expected results, not errors.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator


class LockState(BaseModel):
    """Stored lease tuple. Both fields None means unlocked."""

    model_config = ConfigDict(frozen=True)

    holder_id: Optional[uuid.UUID] = None
    acquired_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_pair(self):
        if (self.holder_id is None) != (self.acquired_at is None):
            raise ValueError("holder_id and acquired_at must be set together")
        return self

    @classmethod
    def unlocked(cls) -> "LockState":
        return cls()

    @property
    def is_unlocked(self) -> bool:
        return self.holder_id is None


class LockStatus(BaseModel):
    """A live (non-expired) lease."""

    holder_id: uuid.UUID
    acquired_at: datetime
    expires_at: datetime


class Acquired(BaseModel):
    """Caller now holds the lease until expires_at."""

    status: Literal["acquired"] = "acquired"
    holder_id: uuid.UUID
    expires_at: datetime
    refreshed: bool = False
    # set when an expired lease of another user was taken over
    previous_holder_id: Optional[uuid.UUID] = None


class Conflict(BaseModel):
    """Someone else holds a live lease.

    holder_id is None only when a racing caller won and already released
    again before we could re-read the row.
    """

    status: Literal["conflict"] = "conflict"
    holder_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None


class LeaseLost(BaseModel):
    """Renewal failed because the caller no longer holds the lease."""

    status: Literal["lease_lost"] = "lease_lost"
    holder_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None


class Released(BaseModel):
    """Lease cleared (or there was nothing to clear)."""

    status: Literal["released"] = "released"
    previous_holder_id: Optional[uuid.UUID] = None


class Rejected(BaseModel):
    """Release refused: the live lease belongs to someone else."""

    status: Literal["rejected"] = "rejected"
    holder_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None


AcquireResult = Union[Acquired, Conflict]
RenewResult = Union[Acquired, LeaseLost]
ReleaseResult = Union[Released, Rejected]


class LockStatusResponse(BaseModel):
    """Lock state as seen by a viewer."""

    note_id: uuid.UUID
    locked: bool
    holder_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None
    held_by_me: bool = False

"""
Pydantic schemas for requests, responses and lease outcomes.
"""

from .access import (
    AccessCheckResponse,
    AccessDecision,
    AccessReason,
    AccessSettingsUpdate,
    Caller,
    Role,
)
from .common import ErrorResponse, HealthCheckResponse
from .locks import (
    Acquired,
    Conflict,
    LeaseLost,
    LockState,
    LockStatus,
    LockStatusResponse,
    Rejected,
    Released,
)
from .notes import NoteCreate, NoteResponse, NoteUpdate

__all__ = [
    # Access schemas
    "Role",
    "Caller",
    "AccessReason",
    "AccessDecision",
    "AccessCheckResponse",
    "AccessSettingsUpdate",
    # Lease schemas
    "LockState",
    "LockStatus",
    "LockStatusResponse",
    "Acquired",
    "Conflict",
    "LeaseLost",
    "Released",
    "Rejected",
    # Note schemas
    "NoteCreate",
    "NoteUpdate",
    "NoteResponse",
    # Common schemas
    "ErrorResponse",
    "HealthCheckResponse",
]

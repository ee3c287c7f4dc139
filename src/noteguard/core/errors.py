"""Errors raised by the service layer and mapped to HTTP responses in main."""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional


class NoteGuardError(Exception):
    """Base class for all NoteGuard errors."""

    error_type = "NoteGuardError"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_details(self) -> Optional[Dict[str, Any]]:
        """JSON friendly details, None when there are none."""
        if not self.details:
            return None
        out = {}
        for key, value in self.details.items():
            if isinstance(value, (uuid.UUID, datetime)):
                value = str(value) if isinstance(value, uuid.UUID) else value.isoformat()
            out[key] = value
        return out


class NoteNotFound(NoteGuardError):
    """Note doesn't exist (or vanished between load and conditional update)."""

    error_type = "NotFound"

    def __init__(self, note_id: uuid.UUID):
        super().__init__(f"Note {note_id} not found", note_id=note_id)
        self.note_id = note_id


class PermissionDenied(NoteGuardError):
    """Caller may not perform the requested action on the note."""

    error_type = "PermissionDenied"


class OrgMismatch(PermissionDenied):
    """Cross-tenant access attempt. Always a denial."""

    error_type = "PermissionDenied"


class _LeaseError(NoteGuardError):
    def __init__(
        self,
        message: str,
        holder_id: Optional[uuid.UUID] = None,
        expires_at: Optional[datetime] = None,
    ):
        super().__init__(message, holder_id=holder_id, expires_at=expires_at)
        self.holder_id = holder_id
        self.expires_at = expires_at


class LockConflictError(_LeaseError):
    """Another user holds a live edit lease."""

    error_type = "LockConflict"


class LockRejectedError(_LeaseError):
    """Release attempted by someone who doesn't hold the lease."""

    error_type = "LockRejected"


class LeaseLostError(_LeaseError):
    """Renewal attempted on a lease the caller no longer holds."""

    error_type = "LeaseLost"

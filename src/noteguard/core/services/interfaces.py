"""
Service interfaces for NoteGuard.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional, Protocol
from uuid import UUID

from ..models.note import Note
from ..schemas.access import AccessCheckResponse, AccessSettingsUpdate, Caller, Role
from ..schemas.common import HealthCheckResponse
from ..schemas.locks import (
    AcquireResult,
    LockState,
    LockStatus,
    LockStatusResponse,
    ReleaseResult,
    RenewResult,
)
from ..schemas.notes import NoteCreate, NoteResponse, NoteUpdate


class LockStore(Protocol):
    """What the lock manager needs from the record store."""

    async def load_note(self, note_id: UUID) -> Optional[Note]:
        ...

    async def compare_and_swap_lock(
        self, note_id: UUID, expected: LockState, new: LockState
    ) -> bool:
        ...

    async def clear_lock(self, note_id: UUID, expected: LockState) -> bool:
        ...


class ILockManager(ABC):
    """Per-note edit lease."""

    @abstractmethod
    async def acquire(self, note_id: UUID, caller_id: UUID) -> AcquireResult:
        """Take, refresh or steal (if expired) the lease."""
        pass

    @abstractmethod
    async def renew(self, note_id: UUID, caller_id: UUID) -> RenewResult:
        """Extend a lease the caller already holds."""
        pass

    @abstractmethod
    async def release(
        self, note_id: UUID, caller_id: UUID, caller_role: Role = Role.MEMBER
    ) -> ReleaseResult:
        """Give the lease back."""
        pass

    @abstractmethod
    async def is_held(self, note_id: UUID, now: Optional[datetime] = None) -> Optional[LockStatus]:
        """Current live lease, if any."""
        pass


class INoteAccessService(ABC):
    """Request-level note operations guarded by policy and lease."""

    @abstractmethod
    async def create_note(self, caller: Caller, request: NoteCreate) -> NoteResponse:
        """Create new note owned by caller."""
        pass

    @abstractmethod
    async def get_note(self, note_id: UUID, caller: Caller) -> NoteResponse:
        """Get note if caller may view it."""
        pass

    @abstractmethod
    async def get_access(self, note_id: UUID, caller: Caller) -> AccessCheckResponse:
        """View/edit decision for caller."""
        pass

    @abstractmethod
    async def update_note(self, note_id: UUID, caller: Caller, request: NoteUpdate) -> NoteResponse:
        """Edit note content under the caller's lease."""
        pass

    @abstractmethod
    async def update_access_settings(
        self, note_id: UUID, caller: Caller, request: AccessSettingsUpdate
    ) -> NoteResponse:
        """Change access configuration."""
        pass

    @abstractmethod
    async def acquire_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        """Acquire or refresh the edit lease."""
        pass

    @abstractmethod
    async def renew_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        """Renew the edit lease."""
        pass

    @abstractmethod
    async def release_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        """Release the edit lease."""
        pass

    @abstractmethod
    async def get_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        """Current lease as seen by caller."""
        pass


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        pass

    @abstractmethod
    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        pass

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        pass

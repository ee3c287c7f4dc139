"""
Service layer interfaces and implementations.
"""

from .interfaces import IHealthService, ILockManager, INoteAccessService, LockStore

from .health_service import HealthService
from .lock_service import DEFAULT_LEASE_TTL, LockManager
from .note_access_service import NoteAccessService

__all__ = [
    # Interfaces
    "ILockManager",
    "INoteAccessService",
    "IHealthService",
    "LockStore",

    # Implementations
    "LockManager",
    "NoteAccessService",
    "HealthService",
    "DEFAULT_LEASE_TTL",
]

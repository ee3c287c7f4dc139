"""
Database models for NoteGuard.

Only notes are persisted here. Users and organizations belong to the
external identity provider and are referenced by UUID.

Models included:
    - Note: note payload, access configuration and edit lease columns
"""

from .base import BaseModel
from .note import AccessLevel, EditMode, Note

__all__ = [
    "BaseModel",
    "Note",
    "AccessLevel",
    "EditMode",
]

"""Custom SQLAlchemy types for NoteGuard models with cross-DB support."""

import json
import uuid
from typing import FrozenSet, Iterable, Optional

from sqlalchemy import String, Text, TypeDecorator


class UUIDSetType(TypeDecorator):
    """
    Store a set of user ids in a DB-friendly way:

    - On PostgreSQL: uses ARRAY(UUID)
    - On SQLite (and others): stores a JSON list in a TEXT column

    Always returns FrozenSet[uuid.UUID] so membership checks stay cheap and
    callers can't mutate the loaded value in place (the ORM wouldn't see it).
    """

    cache_ok = True
    impl = Text  # placeholder, real impl decided per-dialect

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import ARRAY
            from sqlalchemy.dialects.postgresql import UUID as PG_UUID

            return dialect.type_descriptor(ARRAY(PG_UUID(as_uuid=True)))
        # Fallback (e.g., sqlite): JSON as TEXT
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Optional[Iterable], dialect):
        if value is None:
            return None
        # Sorted so the stored value is stable regardless of input order
        values = sorted({_coerce_uuid(v) for v in value}, key=str)
        if dialect.name == "postgresql":
            return values
        return json.dumps([str(v) for v in values])

    def process_result_value(self, value, dialect) -> FrozenSet[uuid.UUID]:
        if value is None:
            return frozenset()
        if dialect.name == "postgresql":
            return frozenset(_coerce_uuid(v) for v in value)
        if isinstance(value, list):
            return frozenset(_coerce_uuid(v) for v in value)
        return frozenset(_coerce_uuid(v) for v in json.loads(value))


def _coerce_uuid(value) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class GUID(TypeDecorator):
    """UUID column: native UUID on PostgreSQL, 36 char string elsewhere."""

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID as PG_UUID

            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = _coerce_uuid(value)
        return value if dialect.name == "postgresql" else str(value)

    def process_result_value(self, value, dialect) -> Optional[uuid.UUID]:
        return None if value is None else _coerce_uuid(value)

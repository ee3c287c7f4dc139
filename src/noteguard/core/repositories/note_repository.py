"""Note repository for database operations."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note import Note
from ..schemas.locks import LockState


class NoteRepository:
    """Repository for note database operations.

    Lease columns are only ever written through compare_and_swap_lock and
    clear_lock, both single conditional UPDATE statements. Never load a
    note, change lock_* in Python and flush it back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_note(self, note_data: dict) -> Note:
        """Create new note."""
        note = Note(**note_data)
        self.session.add(note)
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def load_note(self, note_id: UUID) -> Optional[Note]:
        """Load a note, always re-reading the row.

        populate_existing makes sure a note already in the identity map
        picks up lease changes committed by other sessions.
        """
        stmt = (
            select(Note)
            .where(Note.id == note_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, note_id: UUID) -> bool:
        """Check if note row exists."""
        result = await self.session.execute(select(Note.id).where(Note.id == note_id))
        return result.scalar_one_or_none() is not None

    async def compare_and_swap_lock(
        self, note_id: UUID, expected: LockState, new: LockState
    ) -> bool:
        """Atomically replace the lease tuple if it still equals expected.

        Returns False when the row changed underneath us or is gone.
        """
        stmt = (
            update(Note)
            .where(Note.id == note_id, *self._lock_matches(expected))
            .values(
                lock_holder_id=new.holder_id,
                lock_acquired_at=new.acquired_at,
                # lease bookkeeping isn't a content change
                updated_at=Note.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def clear_lock(self, note_id: UUID, expected: LockState) -> bool:
        """Atomically clear the lease if it still equals expected."""
        return await self.compare_and_swap_lock(note_id, expected, LockState.unlocked())

    async def update_content(
        self, note_id: UUID, holder_id: UUID, update_data: dict
    ) -> Optional[Note]:
        """Write title/content only while holder_id still owns the lease.

        Returns None if the lease moved on (or the note is gone).
        """
        if update_data:
            stmt = (
                update(Note)
                .where(Note.id == note_id, Note.lock_holder_id == holder_id)
                .values(**update_data)
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            if result.rowcount != 1:
                return None
        note = await self.load_note(note_id)
        if note is None or note.lock_holder_id != holder_id:
            return None
        return note

    async def update_access_settings(self, note_id: UUID, update_data: dict) -> Optional[Note]:
        """Update access configuration columns."""
        note = await self.load_note(note_id)
        if not note:
            return None

        for key, value in update_data.items():
            setattr(note, key, value)

        await self.session.commit()
        await self.session.refresh(note)
        return note

    @staticmethod
    def _lock_matches(expected: LockState):
        if expected.is_unlocked:
            return (Note.lock_holder_id.is_(None), Note.lock_acquired_at.is_(None))
        return (
            Note.lock_holder_id == expected.holder_id,
            Note.lock_acquired_at == expected.acquired_at,
        )

"""Edit lease manager.

A note is either Unlocked or Held(holder, expires_at). The lease lives
in the note row; this class holds no state between calls. Every
transition is one read followed by at most one conditional write
against the (holder, acquired_at) tuple that was read, so two callers
racing on the same note can never both win. Nothing here retries,
logs or checks authorization: callers must have checked can_edit
before acquiring.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from ..errors import NoteNotFound
from ..models.base import as_utc, utcnow
from ..models.note import Note
from ..schemas.access import Role
from ..schemas.locks import (
    AcquireResult,
    Acquired,
    Conflict,
    LeaseLost,
    LockState,
    LockStatus,
    Rejected,
    ReleaseResult,
    Released,
    RenewResult,
)
from .interfaces import ILockManager, LockStore

DEFAULT_LEASE_TTL = timedelta(minutes=15)


class LockManager(ILockManager):
    """Lease manager backed by the record store's conditional updates."""

    def __init__(
        self,
        store: LockStore,
        ttl: timedelta = DEFAULT_LEASE_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    async def acquire(self, note_id: UUID, caller_id: UUID) -> AcquireResult:
        note = await self._load(note_id)
        now = self.clock()
        current = self._state_of(note)
        previous_holder = None

        if not current.is_unlocked and current.holder_id != caller_id:
            expires_at = current.acquired_at + self.ttl
            if now < expires_at:
                return Conflict(holder_id=current.holder_id, expires_at=expires_at)
            previous_holder = current.holder_id  # steal an expired lease

        new = LockState(holder_id=caller_id, acquired_at=now)
        if await self.store.compare_and_swap_lock(note_id, current, new):
            return Acquired(
                holder_id=caller_id,
                expires_at=now + self.ttl,
                refreshed=current.holder_id == caller_id,
                previous_holder_id=previous_holder,
            )

        # Lost the race: report whatever lease won.
        stored = self._state_of(await self._load(note_id))
        if stored.holder_id == caller_id:
            return Acquired(
                holder_id=caller_id,
                expires_at=stored.acquired_at + self.ttl,
                refreshed=True,
            )
        return Conflict(holder_id=stored.holder_id, expires_at=self._expiry(stored))

    async def renew(self, note_id: UUID, caller_id: UUID) -> RenewResult:
        note = await self._load(note_id)
        now = self.clock()
        current = self._state_of(note)

        # An expired lease nobody took over can still be renewed by its holder.
        if current.holder_id != caller_id:
            return LeaseLost(holder_id=current.holder_id, expires_at=self._expiry(current))

        new = LockState(holder_id=caller_id, acquired_at=now)
        if await self.store.compare_and_swap_lock(note_id, current, new):
            return Acquired(holder_id=caller_id, expires_at=now + self.ttl, refreshed=True)

        stored = self._state_of(await self._load(note_id))
        if stored.holder_id == caller_id:
            return Acquired(
                holder_id=caller_id, expires_at=stored.acquired_at + self.ttl, refreshed=True
            )
        return LeaseLost(holder_id=stored.holder_id, expires_at=self._expiry(stored))

    async def release(
        self, note_id: UUID, caller_id: UUID, caller_role: Role = Role.MEMBER
    ) -> ReleaseResult:
        note = await self._load(note_id)
        now = self.clock()
        current = self._state_of(note)

        if current.is_unlocked:
            return Released()

        expires_at = current.acquired_at + self.ttl
        allowed = (
            current.holder_id == caller_id
            or now >= expires_at
            or caller_role == Role.ADMIN
        )
        if not allowed:
            return Rejected(holder_id=current.holder_id, expires_at=expires_at)

        if await self.store.clear_lock(note_id, current):
            return Released(previous_holder_id=current.holder_id)

        stored = self._state_of(await self._load(note_id))
        if stored.is_unlocked:
            return Released()
        return Rejected(holder_id=stored.holder_id, expires_at=self._expiry(stored))

    async def is_held(self, note_id: UUID, now: Optional[datetime] = None) -> Optional[LockStatus]:
        note = await self._load(note_id)
        return self.live_lease(note, now or self.clock())

    def live_lease(self, note: Note, now: datetime) -> Optional[LockStatus]:
        """Non-expired lease of an already loaded note, or None."""
        state = self._state_of(note)
        if state.is_unlocked:
            return None
        expires_at = state.acquired_at + self.ttl
        if now >= expires_at:
            return None
        return LockStatus(
            holder_id=state.holder_id, acquired_at=state.acquired_at, expires_at=expires_at
        )

    async def _load(self, note_id: UUID) -> Note:
        note = await self.store.load_note(note_id)
        if note is None:
            raise NoteNotFound(note_id)
        return note

    def _expiry(self, state: LockState) -> Optional[datetime]:
        if state.is_unlocked:
            return None
        return state.acquired_at + self.ttl

    @staticmethod
    def _state_of(note: Note) -> LockState:
        if note.lock_holder_id is None:
            return LockState.unlocked()
        return LockState(holder_id=note.lock_holder_id, acquired_at=as_utc(note.lock_acquired_at))

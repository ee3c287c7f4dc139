import asyncio
import types
from datetime import timedelta
from uuid import uuid4

import pytest

from noteguard.core.errors import NoteNotFound
from noteguard.core.schemas.access import Role
from noteguard.core.schemas.locks import (
    Acquired,
    Conflict,
    LeaseLost,
    LockState,
    Rejected,
    Released,
)
from noteguard.core.services.lock_service import DEFAULT_LEASE_TTL, LockManager


class FakeLockStore:
    """In-memory lease rows with the same compare-and-swap contract as the repository.

    load_note hands out a snapshot and yields to the event loop, so two
    gathered callers both read before either writes.
    """

    def __init__(self):
        self.rows = {}
        self.writes = 0

    def add(self, holder_id=None, acquired_at=None):
        note_id = uuid4()
        self.rows[note_id] = LockState(holder_id=holder_id, acquired_at=acquired_at)
        return note_id

    def state(self, note_id) -> LockState:
        return self.rows[note_id]

    async def load_note(self, note_id):
        row = self.rows.get(note_id)
        if row is None:
            return None
        snapshot = types.SimpleNamespace(
            id=note_id, lock_holder_id=row.holder_id, lock_acquired_at=row.acquired_at
        )
        await asyncio.sleep(0)
        return snapshot

    async def compare_and_swap_lock(self, note_id, expected, new):
        if self.rows.get(note_id) != expected:
            return False
        self.rows[note_id] = new
        self.writes += 1
        return True

    async def clear_lock(self, note_id, expected):
        return await self.compare_and_swap_lock(note_id, expected, LockState.unlocked())


@pytest.fixture
def store():
    return FakeLockStore()


@pytest.fixture
def manager(store, clock):
    return LockManager(store, clock=clock)


@pytest.fixture
def u1():
    return uuid4()


@pytest.fixture
def u2():
    return uuid4()


@pytest.mark.asyncio
async def test_acquire_unlocked_note(manager, store, clock, u1):
    note_id = store.add()

    result = await manager.acquire(note_id, u1)

    assert isinstance(result, Acquired)
    assert result.holder_id == u1
    assert result.expires_at == clock() + DEFAULT_LEASE_TTL
    assert result.refreshed is False
    assert store.state(note_id) == LockState(holder_id=u1, acquired_at=clock())


@pytest.mark.asyncio
async def test_racing_acquires_have_exactly_one_winner(manager, store, u1, u2):
    note_id = store.add()

    results = await asyncio.gather(manager.acquire(note_id, u1), manager.acquire(note_id, u2))

    acquired = [r for r in results if isinstance(r, Acquired)]
    conflicts = [r for r in results if isinstance(r, Conflict)]
    assert len(acquired) == 1
    assert len(conflicts) == 1
    assert conflicts[0].holder_id == acquired[0].holder_id
    assert store.writes == 1


@pytest.mark.asyncio
async def test_many_racing_acquires(manager, store):
    note_id = store.add()
    callers = [uuid4() for _ in range(10)]

    results = await asyncio.gather(*(manager.acquire(note_id, c) for c in callers))

    assert sum(isinstance(r, Acquired) for r in results) == 1
    assert store.writes == 1


@pytest.mark.asyncio
async def test_lease_expiry_and_steal(manager, store, clock, u1, u2):
    note_id = store.add()
    t0 = clock()
    await manager.acquire(note_id, u1)

    clock.advance(minutes=5)
    blocked = await manager.acquire(note_id, u2)
    assert blocked == Conflict(holder_id=u1, expires_at=t0 + timedelta(minutes=15))

    clock.advance(minutes=11)  # t0 + 16m
    stolen = await manager.acquire(note_id, u2)
    assert isinstance(stolen, Acquired)
    assert stolen.holder_id == u2
    assert stolen.previous_holder_id == u1
    assert store.state(note_id).holder_id == u2


@pytest.mark.asyncio
async def test_lease_expires_exactly_at_ttl(manager, store, clock, u1, u2):
    note_id = store.add()
    await manager.acquire(note_id, u1)

    clock.advance(minutes=15)
    assert isinstance(await manager.acquire(note_id, u2), Acquired)


@pytest.mark.asyncio
async def test_acquire_release_acquire_round_trip(manager, store, u1, u2):
    note_id = store.add()

    assert isinstance(await manager.acquire(note_id, u1), Acquired)
    assert await manager.release(note_id, u1) == Released(previous_holder_id=u1)

    again = await manager.acquire(note_id, u2)
    assert isinstance(again, Acquired)
    assert again.holder_id == u2
    assert again.previous_holder_id is None


@pytest.mark.asyncio
async def test_holder_refresh_is_idempotent(manager, store, clock, u1):
    note_id = store.add()
    previous = None

    for _ in range(4):
        result = await manager.acquire(note_id, u1)
        assert isinstance(result, Acquired)
        if previous is not None:
            assert result.refreshed is True
            assert result.expires_at > previous.expires_at
        previous = result
        clock.advance(minutes=10)


@pytest.mark.asyncio
async def test_non_holder_release_is_rejected(manager, store, clock, u1, u2):
    note_id = store.add()
    await manager.acquire(note_id, u1)
    before = store.state(note_id)

    result = await manager.release(note_id, u2)

    assert isinstance(result, Rejected)
    assert result.holder_id == u1
    assert store.state(note_id) == before


@pytest.mark.asyncio
async def test_admin_may_force_release(manager, store, u1, u2):
    note_id = store.add()
    await manager.acquire(note_id, u1)

    result = await manager.release(note_id, u2, Role.ADMIN)

    assert result == Released(previous_holder_id=u1)
    assert store.state(note_id).is_unlocked


@pytest.mark.asyncio
async def test_anyone_may_clear_an_expired_lease(manager, store, clock, u1, u2):
    note_id = store.add()
    await manager.acquire(note_id, u1)
    clock.advance(minutes=20)

    assert await manager.release(note_id, u2) == Released(previous_holder_id=u1)


@pytest.mark.asyncio
async def test_release_of_unlocked_note_is_a_no_op(manager, store, u1):
    note_id = store.add()

    assert await manager.release(note_id, u1) == Released()
    assert store.writes == 0


@pytest.mark.asyncio
async def test_renew_extends_the_lease(manager, store, clock, u1):
    note_id = store.add()
    await manager.acquire(note_id, u1)

    renewed_at = clock.advance(minutes=10)
    result = await manager.renew(note_id, u1)

    assert isinstance(result, Acquired)
    assert result.refreshed is True
    assert result.expires_at == renewed_at + DEFAULT_LEASE_TTL


@pytest.mark.asyncio
async def test_renew_by_non_holder_reports_lease_lost(manager, store, clock, u1, u2):
    note_id = store.add()
    await manager.acquire(note_id, u1)

    result = await manager.renew(note_id, u2)
    assert result == LeaseLost(holder_id=u1, expires_at=clock() + DEFAULT_LEASE_TTL)


@pytest.mark.asyncio
async def test_renew_after_steal_reports_lease_lost(manager, store, clock, u1, u2):
    note_id = store.add()
    await manager.acquire(note_id, u1)
    clock.advance(minutes=16)
    await manager.acquire(note_id, u2)

    result = await manager.renew(note_id, u1)
    assert isinstance(result, LeaseLost)
    assert result.holder_id == u2


@pytest.mark.asyncio
async def test_renew_of_unlocked_note(manager, store, u1):
    note_id = store.add()
    assert await manager.renew(note_id, u1) == LeaseLost()


@pytest.mark.asyncio
async def test_holder_may_renew_expired_lease_nobody_took(manager, store, clock, u1):
    note_id = store.add()
    await manager.acquire(note_id, u1)
    clock.advance(minutes=30)

    assert isinstance(await manager.renew(note_id, u1), Acquired)


@pytest.mark.asyncio
async def test_is_held_ignores_expired_leases(manager, store, clock, u1):
    note_id = store.add()
    await manager.acquire(note_id, u1)

    live = await manager.is_held(note_id)
    assert live.holder_id == u1
    assert live.expires_at == clock() + DEFAULT_LEASE_TTL

    assert await manager.is_held(note_id, now=clock() + timedelta(minutes=16)) is None
    # nothing was written to get there
    assert store.state(note_id).holder_id == u1


@pytest.mark.asyncio
async def test_custom_ttl(store, clock, u1, u2):
    manager = LockManager(store, ttl=timedelta(minutes=1), clock=clock)
    note_id = store.add()
    await manager.acquire(note_id, u1)

    clock.advance(seconds=61)
    assert isinstance(await manager.acquire(note_id, u2), Acquired)


@pytest.mark.asyncio
async def test_missing_note(manager, u1):
    with pytest.raises(NoteNotFound):
        await manager.acquire(uuid4(), u1)
    with pytest.raises(NoteNotFound):
        await manager.release(uuid4(), u1)


@pytest.mark.asyncio
async def test_note_deleted_during_acquire(manager, store, u1):
    note_id = store.add()

    async def vanish(note_id, expected, new):
        store.rows.pop(note_id)
        return False

    store.compare_and_swap_lock = vanish
    with pytest.raises(NoteNotFound):
        await manager.acquire(note_id, u1)

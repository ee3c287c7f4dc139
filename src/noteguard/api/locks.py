"""Edit lease API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.access import Caller
from ..core.schemas.locks import LockStatusResponse
from ..core.services import NoteAccessService
from ..database import get_db_session
from ..middleware.auth import get_current_caller

router = APIRouter(prefix="/notes/{note_id}/lock", tags=["locks"])


@router.get("", response_model=LockStatusResponse)
async def get_lock(
    note_id: UUID,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Who holds the edit lease right now, if anyone."""
    service = NoteAccessService(session)
    return await service.get_lock(note_id, caller)


@router.post("", response_model=LockStatusResponse)
async def acquire_lock(
    note_id: UUID,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Acquire the edit lease (refreshes it if already held)."""
    service = NoteAccessService(session)
    return await service.acquire_lock(note_id, caller)


@router.post("/renew", response_model=LockStatusResponse)
async def renew_lock(
    note_id: UUID,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Extend an edit lease the caller holds."""
    service = NoteAccessService(session)
    return await service.renew_lock(note_id, caller)


@router.delete("", response_model=LockStatusResponse)
async def release_lock(
    note_id: UUID,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Release the edit lease."""
    service = NoteAccessService(session)
    return await service.release_lock(note_id, caller)

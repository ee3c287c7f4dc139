"""Notes API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.access import AccessCheckResponse, AccessSettingsUpdate, Caller
from ..core.schemas.notes import NoteCreate, NoteResponse, NoteUpdate
from ..core.services import NoteAccessService
from ..database import get_db_session
from ..middleware.auth import get_current_caller

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("/", response_model=NoteResponse, status_code=201)
async def create_note(
    request: NoteCreate,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Create a new note in the caller's organization."""
    service = NoteAccessService(session)
    return await service.create_note(caller, request)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Get a note the caller may view."""
    service = NoteAccessService(session)
    return await service.get_note(note_id, caller)


@router.get("/{note_id}/access", response_model=AccessCheckResponse)
async def get_access(
    note_id: UUID,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Whether the caller may view and edit the note."""
    service = NoteAccessService(session)
    return await service.get_access(note_id, caller)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Edit a note. Takes or refreshes the caller's edit lease."""
    service = NoteAccessService(session)
    return await service.update_note(note_id, caller, request)


@router.put("/{note_id}/access", response_model=NoteResponse)
async def update_access_settings(
    note_id: UUID,
    request: AccessSettingsUpdate,
    caller: Caller = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session)
):
    """Change who may view and edit the note."""
    service = NoteAccessService(session)
    return await service.update_access_settings(note_id, caller, request)

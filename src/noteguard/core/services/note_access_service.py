"""Note access service implementation.

The only layer that turns policy/lease outcomes into errors and that
logs them. Each request loads the note once, decides with the access
policy and, for edits, goes through the lock manager before writing.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import Settings, get_settings
from ..errors import (
    LeaseLostError,
    LockConflictError,
    LockRejectedError,
    NoteNotFound,
    OrgMismatch,
    PermissionDenied,
)
from ..logging import get_logger
from ..models.base import utcnow
from ..models.note import Note
from ..policy import AccessPolicyResolver, PolicyOptions
from ..repositories.note_repository import NoteRepository
from ..schemas.access import (
    AccessCheckResponse,
    AccessDecision,
    AccessReason,
    AccessSettingsUpdate,
    Caller,
)
from ..schemas.locks import Acquired, LockStatusResponse, Released
from ..schemas.notes import NoteCreate, NoteResponse, NoteUpdate
from .interfaces import INoteAccessService
from .lock_service import LockManager

logger = get_logger("access")


class NoteAccessService(INoteAccessService):
    """Note access service implementation."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.note_repo = NoteRepository(session)
        self.policy = AccessPolicyResolver(PolicyOptions.from_settings(self.settings))
        self.lock_manager = LockManager(
            self.note_repo,
            ttl=timedelta(minutes=self.settings.lock_lease_ttl_minutes),
            clock=self.clock,
        )

    async def create_note(self, caller: Caller, request: NoteCreate) -> NoteResponse:
        """Create new note in the caller's org."""
        note_data = request.model_dump()
        note_data.update({"creator_id": caller.user_id, "org_id": caller.org_id})
        note = await self.note_repo.create_note(note_data)
        logger.info(
            "Note created",
            extra={"note_id": str(note.id), "user_id": str(caller.user_id)},
        )
        return self._note_to_response(note, caller)

    async def get_note(self, note_id: UUID, caller: Caller) -> NoteResponse:
        note = await self._load_viewable(note_id, caller)
        return self._note_to_response(note, caller)

    async def get_access(self, note_id: UUID, caller: Caller) -> AccessCheckResponse:
        """Both decisions with their reasons, without raising on a plain deny."""
        note = await self._load(note_id)
        view = self.policy.explain_view(note, caller)
        self._reject_cross_tenant(note, caller, view)
        edit = self.policy.explain_edit(note, caller)
        return AccessCheckResponse(
            note_id=note.id,
            can_view=view.allowed,
            can_edit=edit.allowed,
            view_reason=view.reason,
            edit_reason=edit.reason,
        )

    async def update_note(self, note_id: UUID, caller: Caller, request: NoteUpdate) -> NoteResponse:
        """Apply a content edit under the caller's lease.

        The lease is acquired (or refreshed) first; the write itself is
        conditional on the caller still being the holder.
        """
        await self._load_editable(note_id, caller)

        outcome = await self.lock_manager.acquire(note_id, caller.user_id)
        if not isinstance(outcome, Acquired):
            raise self._conflict(note_id, caller, outcome.holder_id, outcome.expires_at)

        note = await self.note_repo.update_content(note_id, caller.user_id, request.changes())
        if note is None:
            if not await self.note_repo.exists(note_id):
                raise NoteNotFound(note_id)
            # lease was released or stolen between acquire and write
            live = await self.lock_manager.is_held(note_id)
            raise self._conflict(
                note_id,
                caller,
                live.holder_id if live else None,
                live.expires_at if live else None,
            )

        logger.info(
            "Note updated",
            extra={"note_id": str(note_id), "user_id": str(caller.user_id)},
        )
        return self._note_to_response(note, caller)

    async def update_access_settings(
        self, note_id: UUID, caller: Caller, request: AccessSettingsUpdate
    ) -> NoteResponse:
        """Only the creator or an admin of the same org may change access settings."""
        note = await self._load_viewable(note_id, caller)
        if not (caller.is_admin or note.is_created_by(caller.user_id)):
            raise PermissionDenied("Only the creator or an admin can change access settings")

        note = await self.note_repo.update_access_settings(note_id, request.changes())
        if note is None:
            raise NoteNotFound(note_id)

        logger.info(
            "Access settings changed",
            extra={
                "note_id": str(note_id),
                "user_id": str(caller.user_id),
                "fields": sorted(request.changes()),
            },
        )
        return self._note_to_response(note, caller)

    async def acquire_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        await self._load_editable(note_id, caller)

        outcome = await self.lock_manager.acquire(note_id, caller.user_id)
        if not isinstance(outcome, Acquired):
            raise self._conflict(note_id, caller, outcome.holder_id, outcome.expires_at)

        if outcome.previous_holder_id is not None:
            logger.info(
                "Expired edit lease taken over",
                extra={
                    "note_id": str(note_id),
                    "user_id": str(caller.user_id),
                    "previous_holder_id": str(outcome.previous_holder_id),
                },
            )
        return self._held_response(note_id, outcome)

    async def renew_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        await self._load_editable(note_id, caller)

        outcome = await self.lock_manager.renew(note_id, caller.user_id)
        if not isinstance(outcome, Acquired):
            logger.info(
                "Edit lease lost before renewal",
                extra={"note_id": str(note_id), "user_id": str(caller.user_id)},
            )
            raise LeaseLostError(
                "You no longer hold the edit lease for this note",
                holder_id=outcome.holder_id,
                expires_at=outcome.expires_at,
            )
        return self._held_response(note_id, outcome)

    async def release_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        await self._load_viewable(note_id, caller)

        outcome = await self.lock_manager.release(note_id, caller.user_id, caller.role)
        if not isinstance(outcome, Released):
            raise LockRejectedError(
                "Cannot release an edit lease held by another user",
                holder_id=outcome.holder_id,
                expires_at=outcome.expires_at,
            )

        if outcome.previous_holder_id not in (None, caller.user_id):
            logger.info(
                "Edit lease released on behalf of another user",
                extra={
                    "note_id": str(note_id),
                    "user_id": str(caller.user_id),
                    "previous_holder_id": str(outcome.previous_holder_id),
                },
            )
        return LockStatusResponse(note_id=note_id, locked=False)

    async def get_lock(self, note_id: UUID, caller: Caller) -> LockStatusResponse:
        note = await self._load_viewable(note_id, caller)
        live = self.lock_manager.live_lease(note, self.clock())
        if live is None:
            return LockStatusResponse(note_id=note_id, locked=False)
        return LockStatusResponse(
            note_id=note_id,
            locked=True,
            holder_id=live.holder_id,
            expires_at=live.expires_at,
            held_by_me=live.holder_id == caller.user_id,
        )

    async def _load(self, note_id: UUID) -> Note:
        note = await self.note_repo.load_note(note_id)
        if note is None:
            raise NoteNotFound(note_id)
        return note

    async def _load_viewable(self, note_id: UUID, caller: Caller) -> Note:
        note = await self._load(note_id)
        decision = self.policy.explain_view(note, caller)
        self._reject_cross_tenant(note, caller, decision)
        if not decision.allowed:
            raise PermissionDenied("You don't have access to this note")
        return note

    async def _load_editable(self, note_id: UUID, caller: Caller) -> Note:
        note = await self._load_viewable(note_id, caller)
        decision = self.policy.explain_edit(note, caller)
        if not decision.allowed:
            raise PermissionDenied(
                "You can't edit this note", reason=decision.reason.value
            )
        return note

    def _reject_cross_tenant(self, note: Note, caller: Caller, decision: AccessDecision) -> None:
        if decision.reason != AccessReason.ORG_MISMATCH:
            return
        logger.warning(
            "Cross-tenant access attempt",
            extra={
                "security": True,
                "note_id": str(note.id),
                "user_id": str(caller.user_id),
                "caller_org_id": str(caller.org_id),
                "note_org_id": str(note.org_id),
            },
        )
        raise OrgMismatch("You don't have access to this note")

    def _conflict(self, note_id, caller, holder_id, expires_at) -> LockConflictError:
        logger.info(
            "Edit lease conflict",
            extra={
                "note_id": str(note_id),
                "user_id": str(caller.user_id),
                "holder_id": str(holder_id) if holder_id else None,
            },
        )
        return LockConflictError(
            "Note is being edited by another user", holder_id=holder_id, expires_at=expires_at
        )

    @staticmethod
    def _held_response(note_id: UUID, outcome: Acquired) -> LockStatusResponse:
        return LockStatusResponse(
            note_id=note_id,
            locked=True,
            holder_id=outcome.holder_id,
            expires_at=outcome.expires_at,
            held_by_me=True,
        )

    def _note_to_response(self, note: Note, caller: Caller) -> NoteResponse:
        """Convert note model to response."""
        live = self.lock_manager.live_lease(note, self.clock())
        return NoteResponse(
            id=note.id,
            title=note.title,
            content=note.content,
            creator_id=note.creator_id,
            org_id=note.org_id,
            access_level=note.access_level,
            edit_mode=note.edit_mode,
            view_access_list=set(note.view_access_list or ()),
            edit_allow_list=set(note.edit_allow_list or ()),
            edit_deny_list=set(note.edit_deny_list or ()),
            is_owned=note.is_created_by(caller.user_id),
            can_edit=self.policy.can_edit(note, caller),
            lock_holder_id=live.holder_id if live else None,
            lock_expires_at=live.expires_at if live else None,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )

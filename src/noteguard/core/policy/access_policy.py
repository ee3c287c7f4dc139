"""
View and edit eligibility rules.

Everything in this module is a pure function of an already-loaded note
and the caller's identity: no I/O, no logging, no exceptions for
well-formed input. Callers turn a False into PermissionDenied.

Rule order matters and is the same for both checks: the tenant boundary
comes first (admins never cross it), then the admin bypass, then the
per-note configuration.
"""

import uuid
from typing import FrozenSet, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from ..models.note import AccessLevel, EditMode
from ..schemas.access import AccessDecision, AccessReason, Caller


class PolicyNote(Protocol):
    """The subset of a note the resolver reads."""

    creator_id: uuid.UUID
    org_id: uuid.UUID
    access_level: AccessLevel
    edit_mode: EditMode
    view_access_list: FrozenSet[uuid.UUID]
    edit_allow_list: FrozenSet[uuid.UUID]
    edit_deny_list: FrozenSet[uuid.UUID]


class PolicyOptions(BaseModel):
    """Switches for the two behaviors that are a product decision.

    creator_bypasses_no_edit: when False (default) edit_mode=no_one locks
        out the creator like everybody else; admins are unaffected.
    private_notes_honor_view_list: when False (default) private notes are
        strictly creator-only; when True view_access_list members may read.
    """

    model_config = ConfigDict(frozen=True)

    creator_bypasses_no_edit: bool = False
    private_notes_honor_view_list: bool = False

    @classmethod
    def from_settings(cls, settings) -> "PolicyOptions":
        return cls(
            creator_bypasses_no_edit=settings.creator_bypasses_no_edit,
            private_notes_honor_view_list=settings.private_notes_honor_view_list,
        )


DEFAULT_OPTIONS = PolicyOptions()


def _allow(reason: AccessReason) -> AccessDecision:
    return AccessDecision(allowed=True, reason=reason)


def _deny(reason: AccessReason) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason)


def explain_view(
    note: PolicyNote, caller: Caller, options: PolicyOptions = DEFAULT_OPTIONS
) -> AccessDecision:
    """Decide whether caller may read note, and why."""
    if note.org_id != caller.org_id:
        return _deny(AccessReason.ORG_MISMATCH)
    if caller.is_admin:
        return _allow(AccessReason.ADMIN)

    level = AccessLevel(note.access_level)
    if level == AccessLevel.PUBLIC:
        return _allow(AccessReason.PUBLIC)
    if caller.user_id == note.creator_id:
        return _allow(AccessReason.CREATOR)

    if level == AccessLevel.SHARED or options.private_notes_honor_view_list:
        if caller.user_id in (note.view_access_list or ()):
            return _allow(AccessReason.VIEW_LIST)
    return _deny(AccessReason.NOT_LISTED)


def explain_edit(
    note: PolicyNote, caller: Caller, options: PolicyOptions = DEFAULT_OPTIONS
) -> AccessDecision:
    """Decide whether caller may change note, and why.

    A caller who cannot view can never edit. The creator may edit in
    every mode except no_one (unless options say otherwise).
    """
    view = explain_view(note, caller, options)
    if view.reason in (AccessReason.ORG_MISMATCH, AccessReason.ADMIN):
        return view
    if not view.allowed:
        return _deny(AccessReason.CANNOT_VIEW)

    mode = EditMode(note.edit_mode)
    is_creator = caller.user_id == note.creator_id

    if mode == EditMode.NO_ONE:
        if is_creator and options.creator_bypasses_no_edit:
            return _allow(AccessReason.CREATOR)
        return _deny(AccessReason.EDIT_LOCKED)
    if is_creator:
        return _allow(AccessReason.CREATOR)
    if mode == EditMode.EVERYONE:
        return _allow(AccessReason.EVERYONE)
    if mode == EditMode.ACCESS_LIST:
        if caller.user_id in (note.edit_allow_list or ()):
            return _allow(AccessReason.ALLOW_LIST)
        return _deny(AccessReason.ALLOW_LIST)
    # deny_list: the list blocks, everyone else who can view may edit
    if caller.user_id in (note.edit_deny_list or ()):
        return _deny(AccessReason.DENY_LIST)
    return _allow(AccessReason.DENY_LIST)


def can_view(
    note: PolicyNote, caller: Caller, options: PolicyOptions = DEFAULT_OPTIONS
) -> bool:
    return explain_view(note, caller, options).allowed


def can_edit(
    note: PolicyNote, caller: Caller, options: PolicyOptions = DEFAULT_OPTIONS
) -> bool:
    return explain_edit(note, caller, options).allowed


class AccessPolicyResolver:
    """The rules above bound to a fixed set of options."""

    def __init__(self, options: Optional[PolicyOptions] = None):
        self.options = options or DEFAULT_OPTIONS

    def can_view(self, note: PolicyNote, caller: Caller) -> bool:
        return can_view(note, caller, self.options)

    def can_edit(self, note: PolicyNote, caller: Caller) -> bool:
        return can_edit(note, caller, self.options)

    def explain_view(self, note: PolicyNote, caller: Caller) -> AccessDecision:
        return explain_view(note, caller, self.options)

    def explain_edit(self, note: PolicyNote, caller: Caller) -> AccessDecision:
        return explain_edit(note, caller, self.options)

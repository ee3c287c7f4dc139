"""Access policy: pure view/edit decisions."""

from .access_policy import (
    DEFAULT_OPTIONS,
    AccessPolicyResolver,
    PolicyNote,
    PolicyOptions,
    can_edit,
    can_view,
    explain_edit,
    explain_view,
)

__all__ = [
    "AccessPolicyResolver",
    "PolicyNote",
    "PolicyOptions",
    "DEFAULT_OPTIONS",
    "can_view",
    "can_edit",
    "explain_view",
    "explain_edit",
]

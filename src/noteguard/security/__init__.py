"""Security utilities."""

from .jwt import (
    revoke_token,
    create_access_token,
    create_caller_token,
    decode_access_token,
    get_caller_from_token,
)

__all__ = [
    "create_access_token",
    "create_caller_token",
    "decode_access_token",
    "get_caller_from_token",
    "revoke_token",
]

"""JWT token utilities.

Tokens come from the identity provider and carry the caller's user id
(sub), organization (org) and role. create_access_token exists for
local development and tests.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from ..config import get_settings
from ..core.redis_client import get_redis_client
from ..core.schemas.access import Caller, Role

logger = logging.getLogger(__name__)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign an access token; every token gets a jti so it can be revoked."""
    settings = get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        **data,
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": "access",
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def create_caller_token(caller: Caller, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        {"sub": str(caller.user_id), "org": str(caller.org_id), "role": caller.role.value},
        expires_delta,
    )


def _decode(token: str) -> Optional[Dict[str, Any]]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


async def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Validated claims, or None for bad, expired or revoked tokens."""
    payload = _decode(token)
    if payload is None or payload.get("type") != "access":
        return None

    jti = payload.get("jti")
    if jti:
        client = get_redis_client()
        try:
            await client.connect()
        except Exception as e:
            # revocation is best effort, signature and expiry still hold
            logger.warning(f"Revocation check skipped, Redis unavailable: {e}")
        else:
            if await client.is_token_revoked(jti):
                return None

    return payload


async def get_caller_from_token(token: str) -> Optional[Caller]:
    """Build the caller identity from a token, None if anything is missing."""
    payload = await decode_access_token(token)
    if not payload:
        return None

    try:
        return Caller(
            user_id=payload.get("sub"),
            org_id=payload.get("org"),
            role=payload.get("role") or Role.MEMBER,
        )
    except ValidationError:
        return None


async def revoke_token(token: str) -> bool:
    """Revoke a token until it would expire anyway. False if that wasn't possible."""
    payload = _decode(token)
    if not payload or not payload.get("jti") or not payload.get("exp"):
        return False

    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    remaining = int((expires_at - datetime.now(timezone.utc)).total_seconds())

    client = get_redis_client()
    try:
        await client.connect()
    except Exception as e:
        logger.error(f"Cannot revoke token, Redis unavailable: {e}")
        return False
    return await client.revoke_token(payload["jti"], remaining)

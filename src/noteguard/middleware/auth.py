"""Authentication middleware."""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.schemas.access import Caller
from ..security import get_caller_from_token


class JWTBearer(HTTPBearer):
    """JWT Bearer token authentication resolving to a Caller."""

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request: Request) -> Caller:
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if not credentials:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authorization code"
            )
        if credentials.scheme != "Bearer":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authentication scheme"
            )

        caller = await get_caller_from_token(credentials.credentials)
        if not caller:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid token or expired token"
            )

        # keep the raw token around for logout
        request.state.access_token = credentials.credentials
        return caller


# Dependency for getting the current caller from JWT
async def get_current_caller(caller: Caller = Depends(JWTBearer())) -> Caller:
    """Get current authenticated caller."""
    return caller

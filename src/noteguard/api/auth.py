"""Auth API endpoints.

Sign-in happens at the identity provider; these only expose the caller
resolved from the bearer token and let a client revoke its own token.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..core.schemas.access import Caller
from ..core.schemas.common import ErrorResponse
from ..middleware.auth import get_current_caller
from ..security import revoke_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=Caller)
async def me(caller: Caller = Depends(get_current_caller)):
    """Identity behind the bearer token."""
    return caller


@router.post("/logout", status_code=204, responses={503: {"model": ErrorResponse}})
async def logout(request: Request, caller: Caller = Depends(get_current_caller)):
    """Revoke the presented access token."""
    revoked = await revoke_token(request.state.access_token)
    if not revoked:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Token revocation is unavailable",
        )

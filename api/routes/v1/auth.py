"""
Session endpoints.

Tokens are issued by the identity service. The marketplace only verifies them
and lets a caller revoke its own token on logout.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_revocation_list, require_principal
from api.schemas.auth import PrincipalResponse, VerifyResponse
from api.schemas.common import MessageResponse
from core.revocation import TokenRevocationList
from core.security import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get("/verify", response_model=VerifyResponse)
async def verify(principal: Principal = Depends(require_principal)):
    """Confirm the presented token is valid and return its principal."""
    return VerifyResponse(valid=True, user=PrincipalResponse(**principal.to_dict()))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    principal: Principal = Depends(require_principal),
    revocations: TokenRevocationList = Depends(get_revocation_list),
):
    """
    Revoke the presented token.

    The token stays on the shared revocation list until it would have expired,
    so every instance rejects it from now on.
    """
    claims = request.scope.get("token_claims") or {}
    await revocations.revoke(request.scope["token"], expires_at=claims.get("exp"))

    logger.info(f"User {principal.id} logged out")
    return MessageResponse(message="Logged out successfully")

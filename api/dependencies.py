"""FastAPI dependencies for dependency injection."""

from fastapi import Depends, Request

from api.services.bids import BidService
from api.services.completions import CompletionService
from api.services.job_postings import JobPostingService
from core.errors import Forbidden, Unauthorized
from core.middleware.authentication import get_current_principal
from core.revocation import TokenRevocationList, token_revocations
from core.security import Principal
from database.engine import AsyncSessionLocal
from database.gateway import PersistenceGateway

_gateway = PersistenceGateway(AsyncSessionLocal)


def get_gateway() -> PersistenceGateway:
    """Process-wide gateway over the application session factory."""
    return _gateway


def get_job_posting_service(
    gateway: PersistenceGateway = Depends(get_gateway),
) -> JobPostingService:
    return JobPostingService(gateway)


def get_bid_service(gateway: PersistenceGateway = Depends(get_gateway)) -> BidService:
    return BidService(gateway)


def get_completion_service(
    gateway: PersistenceGateway = Depends(get_gateway),
) -> CompletionService:
    return CompletionService(gateway)


def get_revocation_list() -> TokenRevocationList:
    return token_revocations


async def require_principal(request: Request) -> Principal:
    """Require an authenticated caller (resolved by AuthenticationMiddleware)."""
    principal = get_current_principal(request)
    if principal is None:
        raise Unauthorized()
    return principal


async def require_admin(principal: Principal = Depends(require_principal)) -> Principal:
    """Require the caller to be an admin."""
    if not principal.is_admin:
        raise Forbidden("Admin access required")
    return principal

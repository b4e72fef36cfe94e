"""Job completion and fixer rating endpoints."""

from fastapi import APIRouter, Depends, Path

from api.dependencies import get_completion_service, require_principal
from api.schemas.bids import BidDecisionRequest
from api.schemas.reviews import CompletionResponse, RateFixerRequest, RateFixerResponse
from api.services.completions import CompletionService
from core.errors import ValidationError
from core.security import Principal

router = APIRouter(tags=["completions"])


@router.post("/complete-job", response_model=CompletionResponse, summary="Complete Job")
async def complete_job(
    body: BidDecisionRequest,
    principal: Principal = Depends(require_principal),
    service: CompletionService = Depends(get_completion_service),
):
    """Mark the job completed and archive the engagement with the accepted fixer."""
    if body.bid_id is None or body.job_id is None:
        raise ValidationError("Bid ID and Job ID are required.")
    completed = await service.complete(body.bid_id, body.job_id, principal)
    return CompletionResponse(message="Job marked as completed", **completed)


@router.post("/job/{id}/rate", response_model=RateFixerResponse, summary="Rate Fixer")
async def rate_fixer(
    body: RateFixerRequest,
    job_id: int = Path(..., alias="id", gt=0),
    principal: Principal = Depends(require_principal),
    service: CompletionService = Depends(get_completion_service),
):
    """Rate the fixer who completed one of your jobs. A later rating replaces the earlier one."""
    review = await service.rate_fixer(
        job_id, principal, body.fixer_id, body.rating, body.comment
    )
    return RateFixerResponse(message="Review submitted successfully", review=review)

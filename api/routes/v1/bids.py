"""
Job bid endpoints.

Fixers submit, edit and withdraw bids; job owners accept one bid per job.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status

from api.dependencies import get_bid_service, require_principal
from api.schemas.bids import (
    BidCreated,
    BidDecisionRequest,
    BidSubmitRequest,
    BidUpdateRequest,
    FixerBidResponse,
    JobBidResponse,
)
from api.schemas.common import MessageResponse
from api.services.bids import BidService
from core.errors import ValidationError
from core.security import Principal

router = APIRouter(tags=["job-bids"])


@router.post(
    "/job-bids",
    status_code=status.HTTP_201_CREATED,
    response_model=BidCreated,
    summary="Submit Bid",
)
async def submit_bid(
    body: BidSubmitRequest,
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    """Place a bid on an open job. One bid per fixer per job."""
    bid_id = await service.submit(
        principal,
        job_posting_id=body.job_posting_id,
        fixer_id=body.fixer_id,
        bid_amount=body.bid_amount,
        description=body.description,
    )
    return BidCreated(bid_id=bid_id)


@router.get("/job/{id}/bids", response_model=list[JobBidResponse], summary="List Bids For Job")
async def list_job_bids(
    job_id: int = Path(..., alias="id", gt=0, description="Job posting ID"),
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    return await service.list_for_job(job_id)


@router.get("/job-bids", response_model=list[FixerBidResponse], summary="List Fixer's Active Bids")
async def list_fixer_bids(
    fixer_id: int = Query(..., gt=0, description="Fixer user ID"),
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    """Pending bids, plus accepted bids whose job is not completed yet."""
    return await service.list_active_for_fixer(fixer_id)


@router.put("/job-bids/{id}", response_model=MessageResponse, summary="Update Bid")
async def update_bid(
    body: BidUpdateRequest,
    bid_id: int = Path(..., alias="id", gt=0),
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    await service.update(bid_id, principal, body.bid_amount, body.description)
    return MessageResponse(message="Job bid updated successfully")


@router.post("/edit-bid", response_model=MessageResponse, summary="Update Bid (legacy)")
async def edit_bid(
    body: BidUpdateRequest,
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    if body.id is None:
        raise ValidationError("Bid ID is required.")
    await service.update(body.id, principal, body.bid_amount, body.description)
    return MessageResponse(message="Job bid updated successfully")


@router.post("/accept-bids", response_model=MessageResponse, summary="Accept Bid")
async def accept_bid(
    body: BidDecisionRequest,
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    """Accept one bid; every other bid on the job is removed."""
    if body.bid_id is None or body.job_id is None:
        raise ValidationError("Bid ID and Job ID are required.")
    await service.accept(body.bid_id, body.job_id, principal)
    return MessageResponse(message="Bid accepted and other bids removed")


@router.delete(
    "/delete-bid/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Bid",
)
async def delete_bid(
    bid_id: int = Path(..., alias="id", gt=0),
    principal: Principal = Depends(require_principal),
    service: BidService = Depends(get_bid_service),
):
    await service.delete(bid_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Job posting endpoints.

Create, list, edit and delete job postings. Legacy POST edit paths are kept
next to their REST equivalents.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from api.dependencies import get_job_posting_service, require_principal
from api.schemas.common import MessageResponse
from api.schemas.job_postings import (
    ActiveJobPostingResponse,
    EditJobPostingRequest,
    JobPostingCreated,
    JobPostingPatchRequest,
    JobPostingRequest,
    JobPostingResponse,
)
from api.services.job_postings import JobPostingFields, JobPostingPatch, JobPostingService
from core.errors import ValidationError
from core.security import Principal

router = APIRouter(tags=["job-postings"])


def _fields(body: JobPostingRequest) -> JobPostingFields:
    return JobPostingFields(
        client_id=body.client_id,
        title=body.title,
        description=body.description,
        location=body.location,
        urgency=body.urgency,
        date=body.date,
        min_budget=body.min_budget,
        max_budget=body.max_budget,
        notify=body.notify,
        images=body.images,
    )


@router.post(
    "/job-postings",
    status_code=status.HTTP_201_CREATED,
    response_model=JobPostingCreated,
    summary="Create Job Posting",
)
async def create_job_posting(
    body: JobPostingRequest,
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    """Create an open job posting for the calling client."""
    job_id = await service.create(principal, _fields(body))
    return JobPostingCreated(job_id=job_id)


@router.get("/job-postings", response_model=list[JobPostingResponse], summary="List Job Postings")
async def list_job_postings(
    client_id: Optional[int] = Query(None, description="Only this client's postings"),
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    """All postings, newest first. An empty marketplace returns an empty list."""
    return await service.list(client_id=client_id)


@router.get(
    "/job-postings/{userId}",
    response_model=list[JobPostingResponse],
    summary="List Client's Job Postings",
)
async def list_job_postings_for_user(
    user_id: int = Path(..., alias="userId", gt=0, description="Client user ID"),
    service: JobPostingService = Depends(get_job_posting_service),
):
    return await service.list(client_id=user_id)


@router.get(
    "/job-postings/{userId}/active",
    response_model=list[ActiveJobPostingResponse],
    summary="List Client's Active Jobs",
)
async def list_active_job_postings(
    user_id: int = Path(..., alias="userId", gt=0, description="Client user ID"),
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    """In-progress postings of a client, each with the accepted fixer when present."""
    return await service.list_active_for_client(user_id)


@router.get("/job-posting/{id}", response_model=JobPostingResponse, summary="Get Job Posting")
async def get_job_posting(
    posting_id: int = Path(..., alias="id", gt=0),
    service: JobPostingService = Depends(get_job_posting_service),
):
    return await service.get(posting_id)


@router.put("/job-postings/{id}", response_model=MessageResponse, summary="Update Job Posting")
async def update_job_posting(
    body: JobPostingRequest,
    posting_id: int = Path(..., alias="id", gt=0),
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    """Overwrite every editable field of a posting."""
    await service.update(posting_id, principal, _fields(body))
    return MessageResponse(message="Job posting updated successfully")


@router.post("/edit-postings", response_model=MessageResponse, summary="Update Job Posting (legacy)")
async def edit_job_posting(
    body: EditJobPostingRequest,
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    if body.id is None:
        raise ValidationError("Job posting ID is required.")
    await service.update(body.id, principal, _fields(body))
    return MessageResponse(message="Job posting updated successfully")


@router.patch("/job-postings/{id}", response_model=JobPostingResponse, summary="Patch Job Posting")
async def patch_job_posting(
    body: JobPostingPatchRequest,
    posting_id: int = Path(..., alias="id", gt=0),
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    """Change only the fields present in the body; returns the updated posting."""
    patch = JobPostingPatch(**body.model_dump(exclude_none=True))
    return await service.patch(posting_id, principal, patch)


@router.delete(
    "/job-postings/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Job Posting",
)
async def delete_job_posting(
    posting_id: int = Path(..., alias="id", gt=0),
    principal: Principal = Depends(require_principal),
    service: JobPostingService = Depends(get_job_posting_service),
):
    """Delete a posting and its bids. Owner or admin only."""
    await service.delete(posting_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

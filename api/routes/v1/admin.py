"""Admin moderation endpoints."""

from fastapi import APIRouter, Depends, Path, Response, status

from api.dependencies import get_job_posting_service, require_admin
from api.services.job_postings import JobPostingService
from core.security import Principal

router = APIRouter(prefix="/admin", tags=["admin"])


@router.delete(
    "/job-postings/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Any Job Posting",
)
async def admin_delete_job_posting(
    posting_id: int = Path(..., alias="id", gt=0),
    admin: Principal = Depends(require_admin),
    service: JobPostingService = Depends(get_job_posting_service),
):
    await service.delete(posting_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Completion and rating service.

Completing a job marks the posting completed and archives the (job, fixer)
pair in one transaction. Clients then rate the fixer; one review exists per
(client, fixer) pair and later ratings overwrite it.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite

from api.services.job_postings import ensure_owner_or_admin
from core.errors import Conflict, Forbidden, Internal, NotFound, ValidationError
from core.security import Principal
from core.utils.validators import clean_text, is_blank
from database.gateway import PersistenceGateway
from database.models.completed_jobs import CompletedJob
from database.models.job_bids import BidStatus, JobBid
from database.models.job_postings import JobPosting, JobStatus, utcnow
from database.models.reviews import MAX_RATING, MIN_RATING, Review

logger = logging.getLogger(__name__)

# Statuses from which Complete may run; completed makes a retry a no-op
COMPLETABLE_STATUSES = (JobStatus.IN_PROGRESS.value, JobStatus.COMPLETED.value)

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def parse_rating(value: Any) -> int:
    """Ratings are whole numbers from MIN_RATING to MAX_RATING."""
    if is_blank(value) or isinstance(value, bool):
        raise ValidationError("Rating is required.")
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be a whole number.")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError("Rating must be a whole number.")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")
    return rating


class CompletionService:
    """Job completion and fixer ratings."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    async def complete(self, bid_id: Any, job_posting_id: Any, principal: Principal) -> Dict[str, Any]:
        """
        Mark a job completed and record the (job, fixer) engagement.

        Calling again for an already completed job leaves exactly one
        completed_jobs row.

        Raises:
            ValidationError: missing ids
            NotFound: unknown posting, unknown bid, or bid of another posting
            Forbidden: caller neither owns the posting nor is an admin
            Conflict: the bid is not accepted or the job is still open
        """
        if is_blank(bid_id) or is_blank(job_posting_id):
            raise ValidationError("Bid ID and Job ID are required.")
        try:
            bid_id, job_posting_id = int(bid_id), int(job_posting_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid ID.")

        async with self.gateway.transaction() as session:
            posting = await self.gateway.scalar(
                session,
                select(JobPosting).where(JobPosting.id == job_posting_id).with_for_update(),
            )
            if posting is None:
                raise NotFound("Job posting not found.", job_posting_id=job_posting_id)
            ensure_owner_or_admin(
                principal, posting.client_id, "Only the job owner can complete this job."
            )

            bid = await self.gateway.scalar(session, select(JobBid).where(JobBid.id == bid_id))
            if bid is None or bid.job_posting_id != job_posting_id:
                raise NotFound("Bid not found for this job.", bid_id=bid_id)
            if bid.status != BidStatus.ACCEPTED.value or posting.status not in COMPLETABLE_STATUSES:
                raise Conflict(
                    "Only a job with an accepted bid can be completed.",
                    bid_status=bid.status,
                    job_status=posting.status,
                )

            fixer_id = bid.fixer_id
            await self.gateway.execute(
                session,
                update(JobPosting)
                .where(JobPosting.id == job_posting_id)
                .values(status=JobStatus.COMPLETED.value),
            )

            archived = await self.gateway.scalar(
                session,
                select(CompletedJob).where(
                    CompletedJob.job_posting_id == job_posting_id,
                    CompletedJob.fixer_id == fixer_id,
                ),
            )
            if archived is None:
                archived = CompletedJob(job_posting_id=job_posting_id, fixer_id=fixer_id)
                session.add(archived)
                await session.flush()
                logger.info(f"Job completed: job={job_posting_id} fixer={fixer_id} bid={bid_id}")
            else:
                logger.info(f"Job already completed: job={job_posting_id} fixer={fixer_id}")

            return {
                "job_posting_id": job_posting_id,
                "fixer_id": fixer_id,
                "completed_at": archived.completed_at,
            }

    async def rate_fixer(
        self,
        job_id: int,
        principal: Principal,
        fixer_id: Any,
        rating: Any,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create or overwrite the caller's review of a fixer.

        The caller must own job_id, the job must be completed, and the fixer
        must be the one who completed it.

        Raises:
            ValidationError: missing fixer id, or rating outside 1..5
            Forbidden: the ownership/completion checks fail
        """
        if is_blank(fixer_id):
            raise ValidationError("Fixer ID is required.")
        try:
            fixer_id = int(fixer_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid fixer ID.")
        rating = parse_rating(rating)
        comment = clean_text(comment)

        async with self.gateway.transaction() as session:
            owned_completed = await self.gateway.scalar(
                session,
                select(JobPosting.id).where(
                    JobPosting.id == job_id,
                    JobPosting.client_id == principal.id,
                    JobPosting.status == JobStatus.COMPLETED.value,
                ),
            )
            if owned_completed is None:
                raise Forbidden(
                    "You can only rate fixers for your completed jobs.",
                    job_id=job_id,
                    client_id=principal.id,
                )

            engaged = await self.gateway.scalar(
                session,
                select(CompletedJob.id).where(
                    CompletedJob.job_posting_id == job_id,
                    CompletedJob.fixer_id == fixer_id,
                ),
            )
            if engaged is None:
                raise Forbidden(
                    "This fixer did not complete the job.", job_id=job_id, fixer_id=fixer_id
                )

            await self._upsert_review(session, principal.id, fixer_id, rating, comment)
            review = await self.gateway.scalar(
                session,
                select(Review).where(
                    Review.client_id == principal.id, Review.fixer_id == fixer_id
                ).execution_options(populate_existing=True),
            )
            saved = {
                "id": review.id,
                "client_id": review.client_id,
                "fixer_id": review.fixer_id,
                "rating": review.rating,
                "comment": review.comment,
                "created_at": review.created_at,
            }

        logger.info(
            f"Fixer rated: fixer={fixer_id} client={principal.id} job={job_id} rating={rating}"
        )
        return saved

    async def _upsert_review(
        self, session, client_id: int, fixer_id: int, rating: int, comment: Optional[str]
    ) -> None:
        """INSERT ... ON CONFLICT (client_id, fixer_id) DO UPDATE."""
        dialect = session.get_bind().dialect.name
        insert = UPSERT_DIALECTS.get(dialect)
        if insert is None:
            logger.error(f"Review upsert is not supported on {dialect}")
            raise Internal()

        now = utcnow()
        statement = insert(Review).values(
            client_id=client_id,
            fixer_id=fixer_id,
            rating=rating,
            comment=comment,
            created_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["client_id", "fixer_id"],
            set_={"rating": rating, "comment": comment, "created_at": now},
        )
        await self.gateway.execute(session, statement)

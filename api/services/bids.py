"""
Bid service.

Fixers bid on open job postings; the posting's owner accepts exactly one bid.
Accepting promotes the winner, deletes every sibling bid and moves the posting
to in_progress inside a single transaction.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError

from api.services.job_postings import ensure_owner_or_admin
from core.errors import Conflict, Forbidden, NotFound, ValidationError
from core.security import Principal
from core.utils.validators import clean_text, decode_images, is_blank, parse_amount
from database.gateway import PersistenceGateway
from database.models.job_bids import BidStatus, JobBid
from database.models.job_postings import JobPosting, JobStatus
from database.models.users import User, UserRole

logger = logging.getLogger(__name__)

DUPLICATE_BID_MESSAGE = "You have already submitted a bid for this job."

# PostgreSQL names the constraint; SQLite lists its columns
DUPLICATE_BID_MARKERS = (
    "uq_job_bids_job_fixer",
    "job_bids.job_posting_id, job_bids.fixer_id",
)


def is_duplicate_bid_violation(detail: str) -> bool:
    """True when a driver error message is the one-bid-per-fixer constraint."""
    return any(marker in detail for marker in DUPLICATE_BID_MARKERS)


def _require_id(value: Any) -> int:
    if is_blank(value):
        raise ValidationError("All required fields must be provided.")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid ID.")
    if parsed <= 0:
        raise ValidationError("Invalid ID.")
    return parsed


class BidService:
    """Bids placed by fixers on job postings."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    async def submit(
        self,
        principal: Principal,
        job_posting_id: Any,
        fixer_id: Any,
        bid_amount: Any,
        description: Optional[str] = None,
    ) -> int:
        """
        Place a pending bid and return its id.

        Raises:
            ValidationError: missing ids, or amount missing or not positive
            Forbidden: caller is not a fixer, or bids for another fixer
            NotFound: the job posting does not exist
            Conflict: the posting is not open, or this fixer already bid on it
        """
        job_posting_id = _require_id(job_posting_id)
        fixer_id = _require_id(fixer_id)
        amount = parse_amount(bid_amount, "bid_amount")

        if not principal.is_admin:
            if principal.role != UserRole.FIXER.value:
                raise Forbidden("Only fixers can bid on job requests.")
            ensure_owner_or_admin(principal, fixer_id, "You cannot bid on behalf of another user.")

        try:
            async with self.gateway.transaction() as session:
                job_status = await self.gateway.scalar(
                    session,
                    select(JobPosting.status).where(JobPosting.id == job_posting_id),
                )
                if job_status is None:
                    raise NotFound("Job posting not found.", job_posting_id=job_posting_id)
                if job_status != JobStatus.OPEN.value:
                    raise Conflict(
                        "This job is no longer accepting bids.",
                        job_posting_id=job_posting_id,
                        status=job_status,
                    )

                existing = await self.gateway.scalar(
                    session,
                    select(JobBid.id).where(
                        JobBid.job_posting_id == job_posting_id,
                        JobBid.fixer_id == fixer_id,
                    ),
                )
                if existing is not None:
                    raise Conflict(DUPLICATE_BID_MESSAGE, bid_id=existing)

                bid = JobBid(
                    job_posting_id=job_posting_id,
                    fixer_id=fixer_id,
                    bid_amount=amount,
                    description=clean_text(description),
                    status=BidStatus.PENDING.value,
                )
                session.add(bid)
                await session.flush()
                bid_id = bid.id
        except IntegrityError as e:
            detail = str(e.orig).lower()
            if "foreign key" in detail:
                raise NotFound("Fixer not found.", fixer_id=fixer_id) from e
            if not is_duplicate_bid_violation(detail):
                raise
            # Lost the race against a concurrent submit for the same pair
            logger.warning(
                f"Duplicate bid rejected by storage: job={job_posting_id} fixer={fixer_id}"
            )
            raise Conflict(DUPLICATE_BID_MESSAGE) from e

        logger.info(f"Bid submitted: id={bid_id} job={job_posting_id} fixer={fixer_id}")
        return bid_id

    async def list_for_job(self, job_posting_id: int) -> List[Dict[str, Any]]:
        """Bids on a posting with the bidder's display identity, newest first."""
        query = (
            select(JobBid, User.username, User.profile_picture)
            .join(User, User.id == JobBid.fixer_id)
            .where(JobBid.job_posting_id == job_posting_id)
            .order_by(JobBid.created_at.desc(), JobBid.id.desc())
        )
        async with self.gateway.session() as session:
            result = await self.gateway.execute(session, query)
            return [
                {
                    **self._serialize(bid),
                    "fixer_name": username,
                    "profile_picture": picture,
                }
                for bid, username, picture in result.all()
            ]

    async def list_active_for_fixer(self, fixer_id: int) -> List[Dict[str, Any]]:
        """
        A fixer's unresolved bids with their posting's public fields.

        Pending bids are always active. An accepted bid stays active until its
        job is completed.
        """
        query = (
            select(JobBid, JobPosting)
            .join(JobPosting, JobPosting.id == JobBid.job_posting_id)
            .where(
                JobBid.fixer_id == fixer_id,
                or_(
                    JobBid.status == BidStatus.PENDING.value,
                    and_(
                        JobBid.status == BidStatus.ACCEPTED.value,
                        JobPosting.status != JobStatus.COMPLETED.value,
                    ),
                ),
            )
            .order_by(JobBid.created_at.desc(), JobBid.id.desc())
        )
        async with self.gateway.session() as session:
            result = await self.gateway.execute(session, query)
            return [
                {
                    **self._serialize(bid),
                    "job_title": posting.title,
                    "job_description": posting.description,
                    "job_location": posting.location,
                    "job_urgency": posting.urgency,
                    "job_date": posting.date,
                    "job_status": posting.status,
                    "client_id": posting.client_id,
                    "images": decode_images(posting.images),
                }
                for bid, posting in result.all()
            ]

    async def update(
        self,
        bid_id: int,
        principal: Principal,
        bid_amount: Any,
        description: Optional[str] = None,
    ) -> None:
        """
        Change amount and description of a pending bid.

        Raises:
            ValidationError: amount missing or not positive
            NotFound: unknown bid, or the bid is no longer pending
            Forbidden: caller is neither the bid's fixer nor an admin
        """
        amount = parse_amount(bid_amount, "bid_amount")

        async with self.gateway.transaction() as session:
            await self._authorize_bid(session, bid_id, principal, "edit")
            result = await self.gateway.execute(
                session,
                update(JobBid)
                .where(JobBid.id == bid_id, JobBid.status == BidStatus.PENDING.value)
                .values(bid_amount=amount, description=clean_text(description)),
            )
            if result.rowcount == 0:
                raise NotFound("Bid not found or no longer editable.", bid_id=bid_id)

        logger.info(f"Bid updated: id={bid_id} by user {principal.id}")

    async def accept(self, bid_id: Any, job_posting_id: Any, principal: Principal) -> None:
        """
        Accept one bid exclusively.

        In one transaction: lock the posting, mark the bid accepted, delete all
        sibling bids and move the posting to in_progress. Any failure rolls back
        every step.

        Raises:
            ValidationError: missing ids
            NotFound: unknown posting, or the bid does not belong to it
            Forbidden: caller neither owns the posting nor is an admin
            Conflict: the posting is not open
        """
        bid_id = _require_id(bid_id)
        job_posting_id = _require_id(job_posting_id)

        async with self.gateway.transaction() as session:
            posting = await self.gateway.scalar(
                session,
                select(JobPosting).where(JobPosting.id == job_posting_id).with_for_update(),
            )
            if posting is None:
                raise NotFound("Job posting not found.", job_posting_id=job_posting_id)
            ensure_owner_or_admin(
                principal, posting.client_id, "Only the job owner can accept bids."
            )
            if posting.status != JobStatus.OPEN.value:
                raise Conflict(
                    "A bid has already been accepted for this job.",
                    job_posting_id=job_posting_id,
                    status=posting.status,
                )

            accepted = await self.gateway.execute(
                session,
                update(JobBid)
                .where(JobBid.id == bid_id, JobBid.job_posting_id == job_posting_id)
                .values(status=BidStatus.ACCEPTED.value),
            )
            if accepted.rowcount == 0:
                raise NotFound(
                    "Bid not found for this job.",
                    bid_id=bid_id,
                    job_posting_id=job_posting_id,
                )

            removed = await self.gateway.execute(
                session,
                delete(JobBid).where(
                    JobBid.job_posting_id == job_posting_id, JobBid.id != bid_id
                ),
            )
            await self.gateway.execute(
                session,
                update(JobPosting)
                .where(JobPosting.id == job_posting_id)
                .values(status=JobStatus.IN_PROGRESS.value),
            )

        logger.info(
            f"Bid accepted: id={bid_id} job={job_posting_id} "
            f"siblings_removed={removed.rowcount} by user {principal.id}"
        )

    async def delete(self, bid_id: int, principal: Principal) -> None:
        """
        Remove a single bid.

        Raises:
            NotFound: unknown bid
            Forbidden: caller is neither the bid's fixer nor an admin
        """
        async with self.gateway.transaction() as session:
            await self._authorize_bid(session, bid_id, principal, "delete")
            await self.gateway.execute(session, delete(JobBid).where(JobBid.id == bid_id))

        logger.info(f"Bid deleted: id={bid_id} by user {principal.id}")

    async def _authorize_bid(self, session, bid_id: int, principal: Principal, action: str) -> None:
        fixer_id = await self.gateway.scalar(
            session, select(JobBid.fixer_id).where(JobBid.id == bid_id).with_for_update()
        )
        if fixer_id is None:
            raise NotFound("Bid not found.", bid_id=bid_id)
        ensure_owner_or_admin(principal, fixer_id, f"You are not authorized to {action} this bid")

    @staticmethod
    def _serialize(bid: JobBid) -> Dict[str, Any]:
        return {
            "id": bid.id,
            "job_posting_id": bid.job_posting_id,
            "fixer_id": bid.fixer_id,
            "bid_amount": bid.bid_amount,
            "description": bid.description,
            "status": bid.status,
            "created_at": bid.created_at,
        }

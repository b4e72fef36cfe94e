"""
Job posting service.

Owns job postings: create, list, update, patch and delete, with budget and
date validation. Deleting a posting removes its bids in the same transaction.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, select, update

from core.errors import Conflict, Forbidden, NotFound, ValidationError
from core.security import Principal
from core.utils.validators import (
    clean_text,
    decode_images,
    encode_images,
    is_blank,
    parse_amount,
    parse_service_date,
)
from database.gateway import PersistenceGateway
from database.models.job_bids import BidStatus, JobBid
from database.models.job_postings import JobPosting, JobStatus
from database.models.users import User, UserRole

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "All required fields must be provided."
BUDGET_ORDER_MESSAGE = "Minimum budget cannot be greater than maximum budget."


@dataclass
class JobPostingFields:
    """Full field set for create and update. Values arrive unvalidated."""

    title: Any = None
    description: Any = None
    location: Any = None
    urgency: Any = None
    date: Any = None
    min_budget: Any = None
    max_budget: Any = None
    notify: bool = False
    images: Optional[List[str]] = None
    client_id: Any = None


@dataclass
class JobPostingPatch:
    """Partial update: only fields that are not None are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    urgency: Optional[str] = None
    date: Any = None
    min_budget: Any = None
    max_budget: Any = None
    notify: Optional[bool] = None
    images: Optional[List[str]] = None

    def present(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def ensure_owner_or_admin(principal: Principal, owner_id: int, message: str) -> None:
    """Raise Forbidden unless the principal owns the resource or is an admin."""
    if principal.is_admin or principal.id == owner_id:
        return
    raise Forbidden(message, principal_id=principal.id, owner_id=owner_id)


def validate_posting_fields(fields: JobPostingFields) -> Dict[str, Any]:
    """
    Validate a full field set and return column values.

    Raises:
        ValidationError: a required field is missing, the date is unparsable,
            a budget is malformed, or min_budget > max_budget
    """
    required = (fields.title, fields.description, fields.location, fields.urgency, fields.date)
    if any(is_blank(value) for value in required):
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    min_budget = parse_amount(fields.min_budget, "min_budget", required=False)
    max_budget = parse_amount(fields.max_budget, "max_budget", required=False)
    if min_budget is not None and max_budget is not None and min_budget > max_budget:
        raise ValidationError(BUDGET_ORDER_MESSAGE)

    return {
        "title": clean_text(fields.title),
        "description": clean_text(fields.description),
        "location": clean_text(fields.location),
        "urgency": str(fields.urgency).strip(),
        "date": parse_service_date(fields.date),
        "min_budget": min_budget,
        "max_budget": max_budget,
        "notify": bool(fields.notify),
        "images": encode_images(fields.images),
    }


def serialize_posting(posting: JobPosting) -> Dict[str, Any]:
    return {
        "id": posting.id,
        "client_id": posting.client_id,
        "title": posting.title,
        "description": posting.description,
        "location": posting.location,
        "urgency": posting.urgency,
        "date": posting.date,
        "min_budget": posting.min_budget,
        "max_budget": posting.max_budget,
        "notify": bool(posting.notify),
        "images": decode_images(posting.images),
        "status": posting.status,
        "created_at": posting.created_at,
    }


class JobPostingService:
    """Job postings owned by clients."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    async def create(self, principal: Principal, fields: JobPostingFields) -> int:
        """
        Create an open job posting and return its id.

        Raises:
            ValidationError: invalid input (see validate_posting_fields)
            Forbidden: caller is not a client, or posts for another client
        """
        if is_blank(fields.client_id):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        try:
            client_id = int(fields.client_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid client ID.")

        values = validate_posting_fields(fields)

        if not principal.is_admin:
            if principal.role != UserRole.CLIENT.value:
                raise Forbidden("Only clients can post job requests.")
            ensure_owner_or_admin(
                principal, client_id, "You cannot post a job request for another user."
            )

        posting = JobPosting(client_id=client_id, status=JobStatus.OPEN.value, **values)
        async with self.gateway.transaction() as session:
            session.add(posting)
            await session.flush()
            posting_id = posting.id

        logger.info(f"Job posting created: id={posting_id} client_id={client_id}")
        return posting_id

    async def get(self, posting_id: int) -> Dict[str, Any]:
        async with self.gateway.session() as session:
            posting = await self.gateway.scalar(
                session, select(JobPosting).where(JobPosting.id == posting_id)
            )
            if posting is None:
                raise NotFound("Job posting not found.", posting_id=posting_id)
            return serialize_posting(posting)

    async def list(self, client_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Postings newest first, optionally only one client's. Empty is a valid result."""
        query = select(JobPosting)
        if client_id is not None:
            query = query.where(JobPosting.client_id == client_id)
        query = query.order_by(JobPosting.created_at.desc(), JobPosting.id.desc())

        async with self.gateway.session() as session:
            result = await self.gateway.execute(session, query)
            postings = [serialize_posting(posting) for posting in result.scalars().all()]

        logger.debug(f"Listed {len(postings)} job postings (client_id={client_id})")
        return postings

    async def update(
        self, posting_id: int, principal: Principal, fields: JobPostingFields
    ) -> None:
        """
        Overwrite every mutable field of a posting.

        Raises:
            ValidationError: invalid input
            NotFound: no posting with that id
            Forbidden: caller neither owns the posting nor is an admin
        """
        values = validate_posting_fields(fields)

        async with self.gateway.transaction() as session:
            owner_id = await self._lock_owner(session, posting_id)
            ensure_owner_or_admin(
                principal, owner_id, "You are not authorized to edit this request"
            )
            result = await self.gateway.execute(
                session,
                update(JobPosting).where(JobPosting.id == posting_id).values(**values),
            )
            if result.rowcount == 0:
                raise NotFound("Job posting not found.", posting_id=posting_id)

        logger.info(f"Job posting updated: id={posting_id} by user {principal.id}")

    async def patch(
        self, posting_id: int, principal: Principal, patch: JobPostingPatch
    ) -> Dict[str, Any]:
        """
        Apply only the fields present in the patch and return the new posting.

        The merged posting is validated as a whole, so a patch that only moves
        min_budget above the stored max_budget is rejected.
        """
        changes = patch.present()
        if not changes:
            raise ValidationError("No valid fields to update.")

        async with self.gateway.transaction() as session:
            posting = await self.gateway.scalar(
                session,
                select(JobPosting).where(JobPosting.id == posting_id).with_for_update(),
            )
            if posting is None:
                raise NotFound("Job posting not found.", posting_id=posting_id)
            ensure_owner_or_admin(
                principal, posting.client_id, "You are not authorized to edit this request"
            )

            merged = JobPostingFields(
                title=changes.get("title", posting.title),
                description=changes.get("description", posting.description),
                location=changes.get("location", posting.location),
                urgency=changes.get("urgency", posting.urgency),
                date=changes.get("date", posting.date),
                min_budget=changes.get("min_budget", posting.min_budget),
                max_budget=changes.get("max_budget", posting.max_budget),
                notify=changes.get("notify", posting.notify),
                images=changes.get("images", decode_images(posting.images)),
            )
            for column, value in validate_posting_fields(merged).items():
                setattr(posting, column, value)
            await session.flush()
            patched = serialize_posting(posting)

        logger.info(
            f"Job posting patched: id={posting_id} fields={sorted(changes)} by user {principal.id}"
        )
        return patched

    async def delete(self, posting_id: int, principal: Principal) -> None:
        """
        Delete a posting and all of its bids atomically.

        Completed postings are kept; their completed_jobs record is permanent.

        Raises:
            NotFound: no posting with that id
            Forbidden: caller neither owns the posting nor is an admin
            Conflict: the posting is completed
        """
        async with self.gateway.transaction() as session:
            posting = await self.gateway.scalar(
                session,
                select(JobPosting).where(JobPosting.id == posting_id).with_for_update(),
            )
            if posting is None:
                raise NotFound("Job posting not found.", posting_id=posting_id)
            ensure_owner_or_admin(
                principal, posting.client_id, "You are not authorized to delete this request"
            )
            if posting.status == JobStatus.COMPLETED.value:
                raise Conflict("A completed job cannot be deleted.", posting_id=posting_id)

            bids = await self.gateway.execute(
                session, delete(JobBid).where(JobBid.job_posting_id == posting_id)
            )
            await self.gateway.execute(
                session, delete(JobPosting).where(JobPosting.id == posting_id)
            )

        logger.info(
            f"Job posting deleted: id={posting_id} bids_removed={bids.rowcount} "
            f"by user {principal.id}"
        )

    async def list_active_for_client(self, client_id: int) -> List[Dict[str, Any]]:
        """In-progress postings of a client with the accepted fixer's identity."""
        query = (
            select(
                JobPosting,
                JobBid.id.label("accepted_bid_id"),
                JobBid.fixer_id,
                User.username.label("fixer_name"),
                User.profile_picture,
            )
            .outerjoin(
                JobBid,
                and_(
                    JobBid.job_posting_id == JobPosting.id,
                    JobBid.status == BidStatus.ACCEPTED.value,
                ),
            )
            .outerjoin(User, User.id == JobBid.fixer_id)
            .where(
                JobPosting.client_id == client_id,
                JobPosting.status == JobStatus.IN_PROGRESS.value,
            )
            .order_by(JobPosting.created_at.desc(), JobPosting.id.desc())
        )

        async with self.gateway.session() as session:
            result = await self.gateway.execute(session, query)
            active = []
            for posting, accepted_bid_id, fixer_id, fixer_name, picture in result.all():
                row = serialize_posting(posting)
                row.update(
                    accepted_bid_id=accepted_bid_id,
                    fixer_id=fixer_id,
                    fixer_name=fixer_name,
                    profile_picture=picture,
                )
                active.append(row)
        return active

    async def _lock_owner(self, session, posting_id: int) -> int:
        """Lock the posting row for this transaction and return its owner."""
        owner_id = await self.gateway.scalar(
            session,
            select(JobPosting.client_id)
            .where(JobPosting.id == posting_id)
            .with_for_update(),
        )
        if owner_id is None:
            raise NotFound("Job posting not found.", posting_id=posting_id)
        return owner_id

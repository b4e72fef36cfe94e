"""
Bids placed by fixers on job postings.

At most one bid per (job posting, fixer) and at most one accepted bid per job
posting; both are enforced by the schema, not only by the bid manager.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base, BigIntId
from database.models.job_postings import utcnow

if TYPE_CHECKING:
    from database.models.job_postings import JobPosting


class BidStatus(str, PyEnum):
    """Bid status. Losing siblings are deleted, so there is no 'rejected'."""

    PENDING = "pending"
    ACCEPTED = "accepted"


class JobBid(Base):
    __tablename__ = "job_bids"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    job_posting_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("job_postings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fixer_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BidStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    job_posting: Mapped["JobPosting"] = relationship(
        "JobPosting", back_populates="bids"
    )

    __table_args__ = (
        UniqueConstraint("job_posting_id", "fixer_id", name="uq_job_bids_job_fixer"),
        CheckConstraint("bid_amount > 0", name="ck_job_bids_amount_positive"),
        Index(
            "uq_job_bids_one_accepted",
            "job_posting_id",
            unique=True,
            postgresql_where=text("status = 'accepted'"),
            sqlite_where=text("status = 'accepted'"),
        ),
        Index("idx_job_bids_fixer_created", "fixer_id", "created_at"),
    )

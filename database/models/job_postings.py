"""
Job postings.

A client's request for work with a budget range, urgency, service date and a
status that moves open -> in_progress -> completed.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base, BigIntId

if TYPE_CHECKING:
    from database.models.job_bids import JobBid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== Job Enums ===================== #
class JobStatus(str, PyEnum):
    """Job posting status."""

    OPEN = "open"  # accepting bids
    IN_PROGRESS = "in_progress"  # one bid accepted
    COMPLETED = "completed"  # work finished, can be rated


class JobPosting(Base):
    __tablename__ = "job_postings"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    urgency: Mapped[str] = mapped_column(String(50), nullable=False)

    # Service date, distinct from created_at
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    min_budget: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    max_budget: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    notify: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # JSON-encoded list of image URIs
    images: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.OPEN.value, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # Relationships
    bids: Mapped[list["JobBid"]] = relationship(
        "JobBid",
        back_populates="job_posting",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "min_budget IS NULL OR max_budget IS NULL OR min_budget <= max_budget",
            name="ck_job_postings_budget_order",
        ),
        Index("idx_job_postings_client_status", "client_id", "status"),
        Index("idx_job_postings_created", "created_at"),
    )

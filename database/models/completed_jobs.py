"""Append-only record of finished (job posting, fixer) engagements.

Rows are never deleted; the posting foreign key restricts deletes.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base, BigIntId
from database.models.job_postings import utcnow


class CompletedJob(Base):
    __tablename__ = "completed_jobs"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    job_posting_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("job_postings.id", ondelete="RESTRICT"),
        nullable=False,
    )
    fixer_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "job_posting_id", "fixer_id", name="uq_completed_jobs_job_fixer"
        ),
    )

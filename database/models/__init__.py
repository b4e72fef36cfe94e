"""Marketplace models. Importing this package registers every table on Base.metadata."""

from database.models.users import User, UserRole
from database.models.job_postings import JobPosting, JobStatus
from database.models.job_bids import JobBid, BidStatus
from database.models.completed_jobs import CompletedJob
from database.models.reviews import Review

__all__ = [
    "User",
    "UserRole",
    "JobPosting",
    "JobStatus",
    "JobBid",
    "BidStatus",
    "CompletedJob",
    "Review",
]

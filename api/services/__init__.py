"""
API Services Layer.

Marketplace operations behind the HTTP routes. Each service owns its
authorization rules and talks to storage through a PersistenceGateway.
"""

from api.services.job_postings import (
    JobPostingService,
    JobPostingFields,
    JobPostingPatch,
    ensure_owner_or_admin,
)

from api.services.bids import BidService

from api.services.completions import CompletionService

__all__ = [
    # Job postings
    "JobPostingService",
    "JobPostingFields",
    "JobPostingPatch",
    "ensure_owner_or_admin",
    # Bids
    "BidService",
    # Completion & rating
    "CompletionService",
]

"""Job bid API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from api.schemas.common import AmountInput


class BidSubmitRequest(BaseModel):
    job_posting_id: Optional[int] = None
    fixer_id: Optional[int] = None
    bid_amount: AmountInput = None
    description: Optional[str] = Field(None, max_length=5000)


class BidUpdateRequest(BaseModel):
    """PUT /job-bids/{id} body; POST /edit-bid also sends the bid id."""

    id: Optional[int] = Field(None, description="Bid ID (POST /edit-bid only)")
    bid_amount: AmountInput = None
    description: Optional[str] = Field(None, max_length=5000)


class BidDecisionRequest(BaseModel):
    """Body of accept and complete: the bid and the job it belongs to."""

    model_config = ConfigDict(populate_by_name=True)

    bid_id: Optional[int] = Field(None, alias="bidId")
    job_id: Optional[int] = Field(None, alias="jobId")


class BidCreated(BaseModel):
    bid_id: int


class BidResponse(BaseModel):
    id: int
    job_posting_id: int
    fixer_id: int
    bid_amount: Decimal
    description: Optional[str] = None
    status: str
    created_at: datetime


class JobBidResponse(BidResponse):
    """A bid as listed on its job, with the bidder's display identity."""

    fixer_name: Optional[str] = None
    profile_picture: Optional[str] = None


class FixerBidResponse(BidResponse):
    """A fixer's bid with its posting's public fields."""

    job_title: str
    job_description: str
    job_location: str
    job_urgency: str
    job_date: datetime
    job_status: str
    client_id: int
    images: list[str] = Field(default_factory=list)

"""Job posting API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from api.schemas.common import AmountInput


class JobPostingRequest(BaseModel):
    """
    Full field set for create and update.

    Fields are optional at the schema level so that missing values produce the
    service's own validation message.
    """

    client_id: Optional[int] = Field(None, description="Owning client's user ID (create only)")
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    urgency: Optional[str] = Field(None, max_length=50, description="e.g. low, medium, high")
    date: Optional[str] = Field(None, description="Service date, ISO-8601 preferred")
    min_budget: AmountInput = None
    max_budget: AmountInput = None
    notify: bool = False
    images: Optional[list[str]] = Field(None, description="Image URIs, in display order")


class EditJobPostingRequest(JobPostingRequest):
    """POST /edit-postings body: the full field set plus the posting id."""

    id: Optional[int] = Field(None, description="Job posting ID")


class JobPostingPatchRequest(BaseModel):
    """Partial update. Omitted or null fields are left unchanged."""

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    urgency: Optional[str] = Field(None, max_length=50)
    date: Optional[str] = None
    min_budget: AmountInput = None
    max_budget: AmountInput = None
    notify: Optional[bool] = None
    images: Optional[list[str]] = None


class JobPostingCreated(BaseModel):
    job_id: int


class JobPostingResponse(BaseModel):
    id: int
    client_id: int
    title: str
    description: str
    location: str
    urgency: str
    date: datetime
    min_budget: Optional[Decimal] = None
    max_budget: Optional[Decimal] = None
    notify: bool
    images: list[str] = Field(default_factory=list)
    status: str
    created_at: datetime


class ActiveJobPostingResponse(JobPostingResponse):
    """An in-progress posting with the accepted fixer, when there is one."""

    accepted_bid_id: Optional[int] = None
    fixer_id: Optional[int] = None
    fixer_name: Optional[str] = None
    profile_picture: Optional[str] = None

"""Completion and rating API schemas."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field


class CompletionResponse(BaseModel):
    message: str
    job_posting_id: int
    fixer_id: int
    completed_at: datetime


class RateFixerRequest(BaseModel):
    fixer_id: Optional[int] = None
    rating: Union[int, float, str, None] = Field(None, description="Whole number from 1 to 5")
    comment: Optional[str] = Field(None, max_length=5000)


class ReviewResponse(BaseModel):
    id: int
    client_id: int
    fixer_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class RateFixerResponse(BaseModel):
    message: str
    review: ReviewResponse

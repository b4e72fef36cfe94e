"""Common Pydantic schemas shared across the API."""

from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, Field

# Monetary input: a JSON number, a numeric string, or "" for "not given"
AmountInput = Union[Decimal, str, None]


class ErrorResponse(BaseModel):
    """Error response model. Every failure has this shape."""

    error: str = Field(description="Human-readable error message")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(description="Outcome of the operation")


class IdentifiedRequest(BaseModel):
    """Body of legacy POST edit endpoints, which carry the target id in the body."""

    id: Optional[int] = Field(None, description="Target resource ID")

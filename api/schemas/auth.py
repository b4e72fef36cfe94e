"""Identity API schemas."""

from typing import Optional

from pydantic import BaseModel


class PrincipalResponse(BaseModel):
    id: int
    role: str
    name: Optional[str] = None


class VerifyResponse(BaseModel):
    valid: bool
    user: PrincipalResponse

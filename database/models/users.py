"""
Users as seen by the marketplace core.

Registration, profiles and credentials belong to the identity service; the core
only reads display identity (name, picture) and role for joins.
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base, BigIntId


# ==================== User Role ===================== #
class UserRole(str, PyEnum):
    CLIENT = "client"  # posts job requests
    FIXER = "fixer"  # bids on job requests
    ADMIN = "admin"  # platform moderation


class User(Base):
    """Display identity of a registered user."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.CLIENT.value
    )
    profile_picture: Mapped[str | None] = mapped_column(String(512))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

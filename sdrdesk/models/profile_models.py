"""SDR Desk — User Profile Model."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class AccessLevel(str, Enum):
    USER = "user"
    ADMIN = "admin"
    AI = "ai"


class Profile(SQLModel, table=True):
    """Access level for an authenticated user id."""

    __tablename__ = "profiles"

    id: str = Field(primary_key=True, description="Auth provider user id")
    email: Optional[str] = Field(default=None, index=True)
    access_level: str = Field(default=AccessLevel.USER.value)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

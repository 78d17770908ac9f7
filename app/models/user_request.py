from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint
from datetime import datetime

from app.core.clock import utc_now


class UserRequestCount(SQLModel, table=True):
    """Per-user daily request counter used by rate-limit callers."""

    __tablename__ = "user_requests"
    __table_args__ = (UniqueConstraint("user_id", "request_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    request_date: str   # YYYY-MM-DD
    request_count: int = 1
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

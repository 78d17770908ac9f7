from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from app.core.clock import utc_now


class Chat(SQLModel, table=True):
    """A conversation; owns its messages, projects and images (deleted with it)."""

    __tablename__ = "chats"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, index=True)

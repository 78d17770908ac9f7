from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from app.core.clock import utc_now


class Image(SQLModel, table=True):
    """A generated image; rows are written by the image handler, kept here for the schema."""

    __tablename__ = "images"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: int = Field(foreign_key="chats.id", ondelete="CASCADE", index=True)
    prompt: str
    file_path: str
    created_at: datetime = Field(default_factory=utc_now)

from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from app.core.clock import utc_now

class ChatMessage(SQLModel, table=True):
    __tablename__ = "messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: int = Field(foreign_key="chats.id", ondelete="CASCADE", index=True)
    role: str  # "user" | "assistant"
    content: str
    sent_at: datetime = Field(default_factory=utc_now)

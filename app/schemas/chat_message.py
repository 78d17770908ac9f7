from pydantic import BaseModel
from typing import Literal
from datetime import datetime

class ChatMessageCreate(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class ChatMessageRead(BaseModel):
    id: int
    chat_id: int
    role: str
    content: str
    sent_at: datetime

    class Config:
        from_attributes = True

from pydantic import BaseModel
from datetime import datetime

class ChatCreate(BaseModel):
    title: str

class ChatUpdate(BaseModel):
    title: str

class ChatRead(BaseModel):
    id: int
    title: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

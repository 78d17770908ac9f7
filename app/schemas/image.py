from pydantic import BaseModel
from datetime import datetime

class ImageCreate(BaseModel):
    prompt: str
    file_path: str

class ImageRead(BaseModel):
    id: int
    chat_id: int
    prompt: str
    file_path: str
    created_at: datetime

    class Config:
        from_attributes = True

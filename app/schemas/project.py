from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class ProjectCreate(BaseModel):
    name: str
    description: str = ""
    file_path: str = ""

class ProjectRead(BaseModel):
    id: int
    chat_id: int
    name: str
    description: str
    file_path: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ProjectStatusUpdate(BaseModel):
    status: str   # building | completed | failed

class LatestProjectResponse(BaseModel):
    status: str
    message: str
    file: Optional[str] = None
    file_path: Optional[str] = None

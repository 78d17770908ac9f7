from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from app.core.clock import utc_now

PROJECT_BUILDING = "building"
PROJECT_COMPLETED = "completed"
PROJECT_FAILED = "failed"
PROJECT_STATUSES = (PROJECT_BUILDING, PROJECT_COMPLETED, PROJECT_FAILED)


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: int = Field(foreign_key="chats.id", ondelete="CASCADE", index=True)
    name: str
    description: str = ""
    file_path: str = ""
    status: str = PROJECT_BUILDING
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

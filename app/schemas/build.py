from pydantic import BaseModel
from typing import Optional

from app.schemas.dialog import Requirements

BUILD_SUCCESS = "success"
BUILD_PARTIAL = "partial_success"
BUILD_ERROR = "error"


class BuildRequest(BaseModel):
    message: str
    user_id: Optional[str] = None
    requirements: Optional[Requirements] = None
    chat_id: Optional[int] = None
    # None means "use PUSH_ON_BUILD"
    push: Optional[bool] = None


class BuildResponse(BaseModel):
    status: str
    message: str
    file: Optional[str] = None
    github_url: Optional[str] = None


class PageRequest(BaseModel):
    message: str


class PageResponse(BaseModel):
    status: str
    html: Optional[str] = None
    error: Optional[str] = None


class ClearRequest(BaseModel):
    raw_html: str


class ClearResponse(BaseModel):
    status: str
    clean_html: str

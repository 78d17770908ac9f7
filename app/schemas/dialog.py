from pydantic import BaseModel, Field
from typing import List, Optional


class Requirements(BaseModel):
    site_type: str = ""
    target_audience: str = ""
    note: str = ""


class DialogMessage(BaseModel):
    role: str      # "user" | "assistant"
    content: str


class DialogSession(BaseModel):
    user_id: str
    history: List[DialogMessage] = Field(default_factory=list)
    requirements: Requirements = Field(default_factory=Requirements)
    is_complete: bool = False
    current_question: str = ""   # "" | "target_audience" | "complete"


class AskRequest(BaseModel):
    message: str
    user_id: Optional[str] = None


class AskResponse(BaseModel):
    status: str
    message: str


class RequirementsResponse(BaseModel):
    status: str
    requirements: Requirements
    is_complete: bool
    current_question: str
    history: List[DialogMessage]


class IdeaResponse(BaseModel):
    status: str
    expanded_prompt: Optional[str] = None
    error: Optional[str] = None


class IdeaRequest(BaseModel):
    message: str

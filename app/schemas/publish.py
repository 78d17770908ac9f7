from pydantic import BaseModel


class PublishRequest(BaseModel):
    # empty strings are rejected by the handler with 400
    filename: str = ""
    user_id: str = ""


class PublishResponse(BaseModel):
    status: str
    message: str
    filename: str
    user_id: str
    remote_path: str = ""


class UsageResponse(BaseModel):
    user_id: str
    date: str
    count: int

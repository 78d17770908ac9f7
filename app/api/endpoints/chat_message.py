from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from app.api.deps import get_cancel_token, get_repository
from app.core.cancellation import CancelToken
from app.schemas.chat_message import ChatMessageCreate, ChatMessageRead
from app.services.repository import Repository

router = APIRouter()

@router.post("/chats/{chat_id}/messages", response_model=ChatMessageRead, status_code=status.HTTP_201_CREATED)
def create_message(
    chat_id: int,
    message_in: ChatMessageCreate,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    message = repository.create_message(chat_id, message_in.role, message_in.content, cancel=cancel)
    if not message:
        raise HTTPException(status_code=404, detail="Chat not found")
    return message

@router.get("/chats/{chat_id}/messages", response_model=List[ChatMessageRead])
def list_messages(
    chat_id: int,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if not repository.get_chat(chat_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Chat not found")
    return repository.list_messages(chat_id, limit=limit, offset=offset, cancel=cancel)

@router.get("/messages/{message_id}", response_model=ChatMessageRead)
def get_message(
    message_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    message = repository.get_message(message_id, cancel=cancel)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message

@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(
    message_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if not repository.delete_message(message_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Message not found")

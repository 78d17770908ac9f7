from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from app.api.deps import get_cancel_token, get_repository
from app.core.cancellation import CancelToken
from app.schemas.chat import ChatCreate, ChatRead, ChatUpdate
from app.services.repository import Repository

router = APIRouter()

@router.post("/chats", response_model=ChatRead, status_code=status.HTTP_201_CREATED)
def create_chat(
    chat_in: ChatCreate,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    return repository.create_chat(chat_in.title, cancel=cancel)

@router.get("/chats", response_model=List[ChatRead])
def list_chats(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    return repository.list_chats(limit=limit, offset=offset, cancel=cancel)

@router.get("/chats/{chat_id}", response_model=ChatRead)
def get_chat(
    chat_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    chat = repository.get_chat(chat_id, cancel=cancel)
    if not chat:
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat

@router.put("/chats/{chat_id}", response_model=ChatRead)
def update_chat(
    chat_id: int,
    chat_in: ChatUpdate,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    chat = repository.update_chat(chat_id, chat_in.title, cancel=cancel)
    if not chat:
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat

@router.delete("/chats/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chat(
    chat_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    # messages, projects and images go with it
    if not repository.delete_chat(chat_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Chat not found")

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.api.deps import get_cancel_token, get_repository
from app.core.cancellation import CancelToken
from app.schemas.image import ImageCreate, ImageRead
from app.services.repository import Repository

router = APIRouter()

@router.post("/chats/{chat_id}/images", response_model=ImageRead, status_code=status.HTTP_201_CREATED)
def create_image(
    chat_id: int,
    image_in: ImageCreate,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    image = repository.create_image(chat_id, image_in.prompt, image_in.file_path, cancel=cancel)
    if not image:
        raise HTTPException(status_code=404, detail="Chat not found")
    return image

@router.get("/chats/{chat_id}/images", response_model=List[ImageRead])
def list_images(
    chat_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if not repository.get_chat(chat_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Chat not found")
    return repository.list_images(chat_id, cancel=cancel)

@router.get("/images/{image_id}", response_model=ImageRead)
def get_image(
    image_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    image = repository.get_image(image_id, cancel=cancel)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return image

@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    image_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if not repository.delete_image(image_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Image not found")

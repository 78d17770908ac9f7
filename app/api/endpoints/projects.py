from fastapi import APIRouter, HTTPException, Depends, status
from typing import List

from app.api.deps import get_artifact_store, get_cancel_token, get_repository
from app.core.cancellation import CancelToken
from app.models.project import PROJECT_STATUSES
from app.schemas.project import ProjectCreate, ProjectRead, ProjectStatusUpdate
from app.services.artifact_store import ArtifactStore
from app.services.repository import Repository

router = APIRouter()

@router.post("/chats/{chat_id}/projects", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    chat_id: int,
    project_in: ProjectCreate,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    project = repository.create_project(
        chat_id,
        project_in.name,
        project_in.description,
        project_in.file_path,
        cancel=cancel,
    )
    if not project:
        raise HTTPException(status_code=404, detail="Chat not found")
    return project

@router.get("/chats/{chat_id}/projects", response_model=List[ProjectRead])
def list_projects(
    chat_id: int,
    store: ArtifactStore = Depends(get_artifact_store),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if not store.repository.get_chat(chat_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Chat not found")
    return store.list_projects(chat_id, cancel=cancel)

@router.get("/projects/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: int,
    store: ArtifactStore = Depends(get_artifact_store),
    cancel: CancelToken = Depends(get_cancel_token),
):
    project = store.resolve_project(project_id, cancel=cancel)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project

@router.put("/projects/{project_id}/status", response_model=ProjectRead)
def update_project_status(
    project_id: int,
    status_in: ProjectStatusUpdate,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if status_in.status not in PROJECT_STATUSES:
        raise HTTPException(status_code=422, detail=f"status must be one of {', '.join(PROJECT_STATUSES)}")
    project = repository.update_project_status(project_id, status_in.status, cancel=cancel)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project

@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    if not repository.delete_project(project_id, cancel=cancel):
        raise HTTPException(status_code=404, detail="Project not found")

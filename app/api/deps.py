from datetime import date
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from app.core.cancellation import CancelToken
from app.core.config import Settings
from app.core.errors import EmptyInput
from app.database import get_session, settings as app_settings
from app.services.artifact_store import ArtifactStore
from app.services.build_flow import BuildFlow
from app.services.dialog_sessions import DialogSessionStore, normalize_user_id
from app.services.publication import ObjectStoragePublisher, RepositoryPusher
from app.services.repository import Repository
from app.services.website_pipeline import WebsitePipeline
from app.utils.llm_client import ChatCompletionsClient, LLMClient


def get_settings() -> Settings:
    return app_settings


def get_cancel_token(settings: Settings = Depends(get_settings)) -> CancelToken:
    return CancelToken(timeout=settings.request_timeout)


def get_repository(session: Session = Depends(get_session)) -> Repository:
    return Repository(session)


def get_dialog_store(request: Request) -> DialogSessionStore:
    return request.app.state.dialog_sessions


def get_requirements_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    return LLMClient.from_profile(settings.requirements_llm)


def get_builder_client(settings: Settings = Depends(get_settings)):
    if settings.chat_completions_enabled:
        return ChatCompletionsClient(
            settings.huggingface_chat_url,
            settings.huggingface_api_key,
            settings.huggingface_model,
            timeout=settings.builder_llm_timeout,
        )
    return LLMClient.from_profile(settings.builder_llm)


def get_pipeline(client=Depends(get_builder_client)) -> WebsitePipeline:
    return WebsitePipeline(client)


def get_artifact_store(
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> ArtifactStore:
    return ArtifactStore(settings.result_dir, repository)


def get_repository_pusher(settings: Settings = Depends(get_settings)) -> Optional[RepositoryPusher]:
    if not settings.repository_push_command:
        return None
    return RepositoryPusher(
        settings.repository_push_command,
        cwd=settings.repository_push_cwd,
        timeout=settings.repository_push_timeout,
        fallback_url=settings.repository_url,
    )


def get_object_storage(settings: Settings = Depends(get_settings)) -> ObjectStoragePublisher:
    return ObjectStoragePublisher(settings.object_storage_url, timeout=settings.object_storage_timeout)


def get_build_flow(
    pipeline: WebsitePipeline = Depends(get_pipeline),
    store: ArtifactStore = Depends(get_artifact_store),
    pusher: Optional[RepositoryPusher] = Depends(get_repository_pusher),
) -> BuildFlow:
    return BuildFlow(pipeline.generate_website, store, pusher)


def validate_message(message: str, settings: Settings) -> None:
    """Reject blank (400) and oversized (413) messages before anything is counted or called."""
    if not message or not message.strip():
        raise HTTPException(status_code=400, detail=str(EmptyInput()))
    if settings.max_message_length and len(message) > settings.max_message_length:
        raise HTTPException(
            status_code=413,
            detail=f"message is longer than {settings.max_message_length} characters",
        )


def count_request(user_id: Optional[str], repository: Repository, settings: Settings, cancel: CancelToken) -> int:
    """Bump today's counter for the user; 429 once ``DAILY_REQUEST_LIMIT`` is reached."""
    key = normalize_user_id(user_id)
    today = date.today().isoformat()
    if settings.daily_request_limit > 0:
        if repository.get_request_count(key, today, cancel=cancel) >= settings.daily_request_limit:
            raise HTTPException(status_code=429, detail="Daily request limit reached")
    return repository.increment_request_count(key, today, cancel=cancel)

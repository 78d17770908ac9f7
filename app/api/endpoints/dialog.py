import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    count_request,
    get_cancel_token,
    get_dialog_store,
    get_repository,
    get_requirements_client,
    get_settings,
    validate_message,
)
from app.core.cancellation import CancelToken
from app.core.config import Settings
from app.core.errors import AppError, InputError
from app.schemas.dialog import (
    AskRequest,
    AskResponse,
    IdeaRequest,
    IdeaResponse,
    RequirementsResponse,
)
from app.services.dialog_sessions import DialogSessionStore
from app.services.repository import Repository
from app.services.requirements_flow import expand_idea, handle_ask

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ask", response_model=AskResponse)
def ask(
    ask_in: AskRequest,
    store: DialogSessionStore = Depends(get_dialog_store),
    client=Depends(get_requirements_client),
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    cancel: CancelToken = Depends(get_cancel_token),
):
    logger.info("Incoming /ask: user_id=%r, %d chars", ask_in.user_id, len(ask_in.message))
    validate_message(ask_in.message, settings)
    count_request(ask_in.user_id, repository, settings, cancel)

    try:
        reply = handle_ask(store, client, ask_in.user_id, ask_in.message, cancel=cancel)
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AppError as e:
        logger.error("Dialog turn failed: %s", e)
        return AskResponse(status="error", message=f"Ошибка обработки запроса: {e}")
    return AskResponse(status="success", message=reply)


@router.get("/requirements", response_model=RequirementsResponse)
def get_requirements(
    user_id: Optional[str] = None,
    store: DialogSessionStore = Depends(get_dialog_store),
):
    snapshot = store.snapshot(store.get_or_create(user_id))
    return RequirementsResponse(
        status="success",
        requirements=snapshot.requirements,
        is_complete=snapshot.is_complete,
        current_question=snapshot.current_question,
        history=snapshot.history,
    )


@router.delete("/requirements", response_model=AskResponse)
def reset_requirements(
    user_id: Optional[str] = None,
    store: DialogSessionStore = Depends(get_dialog_store),
):
    store.reset(user_id)
    return AskResponse(status="success", message="Сессия сброшена")


@router.post("/idea", response_model=IdeaResponse)
def idea(
    idea_in: IdeaRequest,
    client=Depends(get_requirements_client),
    settings: Settings = Depends(get_settings),
    cancel: CancelToken = Depends(get_cancel_token),
):
    validate_message(idea_in.message, settings)
    try:
        expanded = expand_idea(client, idea_in.message, cancel=cancel)
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AppError as e:
        logger.error("Idea expansion failed: %s", e)
        return IdeaResponse(status="error", error=str(e))
    return IdeaResponse(status="success", expanded_prompt=expanded)

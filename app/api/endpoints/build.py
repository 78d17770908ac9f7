import logging
import os

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    count_request,
    get_artifact_store,
    get_build_flow,
    get_cancel_token,
    get_pipeline,
    get_repository,
    get_settings,
    validate_message,
)
from app.core.cancellation import CancelToken
from app.core.config import Settings
from app.core.errors import AppError, InputError
from app.schemas.build import (
    BUILD_ERROR,
    BuildRequest,
    BuildResponse,
    ClearRequest,
    ClearResponse,
    PageRequest,
    PageResponse,
)
from app.schemas.project import LatestProjectResponse
from app.services.artifact_store import ArtifactStore
from app.services.build_flow import BuildFlow
from app.services.html_sanitizer import sanitize
from app.services.repository import Repository
from app.services.website_pipeline import WebsitePipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_build(flow: BuildFlow, build_in: BuildRequest, push: bool, cancel: CancelToken) -> BuildResponse:
    try:
        return flow.run(build_in, push=push, cancel=cancel)
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AppError as e:
        logger.error("Build failed: %s", e)
        return BuildResponse(status=BUILD_ERROR, message=f"Ошибка генерации сайта: {e}")


@router.post("/build", response_model=BuildResponse, response_model_exclude_none=True)
def build(
    build_in: BuildRequest,
    flow: BuildFlow = Depends(get_build_flow),
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    cancel: CancelToken = Depends(get_cancel_token),
):
    logger.info("Incoming /build: user_id=%r, %d chars", build_in.user_id, len(build_in.message))
    validate_message(build_in.message, settings)
    count_request(build_in.user_id, repository, settings, cancel)

    push = settings.push_on_build if build_in.push is None else build_in.push
    return _run_build(flow, build_in, push, cancel)


@router.post("/build/single-shot", response_model=BuildResponse, response_model_exclude_none=True)
def build_single_shot(
    build_in: BuildRequest,
    pipeline: WebsitePipeline = Depends(get_pipeline),
    store: ArtifactStore = Depends(get_artifact_store),
    settings: Settings = Depends(get_settings),
    cancel: CancelToken = Depends(get_cancel_token),
):
    validate_message(build_in.message, settings)
    flow = BuildFlow(pipeline.generate_website_single_shot, store)
    return _run_build(flow, build_in, False, cancel)


@router.post("/builder22", response_model=PageResponse, response_model_exclude_none=True)
def build_page(
    page_in: PageRequest,
    pipeline: WebsitePipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
    cancel: CancelToken = Depends(get_cancel_token),
):
    validate_message(page_in.message, settings)
    try:
        html = pipeline.generate_page(page_in.message, cancel=cancel)
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AppError as e:
        logger.error("Page generation failed: %s", e)
        return PageResponse(status="error", error=str(e))
    return PageResponse(status="success", html=html)


@router.post("/clear", response_model=ClearResponse)
def clear(clear_in: ClearRequest):
    clean_html = sanitize(clear_in.raw_html)
    logger.info("Cleaned HTML: %d -> %d chars", len(clear_in.raw_html), len(clean_html))
    return ClearResponse(status="success", clean_html=clean_html)


@router.get("/latest", response_model=LatestProjectResponse, response_model_exclude_none=True)
def latest(
    store: ArtifactStore = Depends(get_artifact_store),
    cancel: CancelToken = Depends(get_cancel_token),
):
    project = store.latest_project(cancel=cancel)
    if project is None:
        return LatestProjectResponse(status="success", message="No generated files found", file="")
    return LatestProjectResponse(
        status="success",
        message=f"Latest generated file: {project.name} ({project.status})",
        file=os.path.basename(project.file_path),
        file_path=project.file_path,
    )

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_artifact_store, get_cancel_token, get_object_storage, get_repository
from app.core.cancellation import CancelToken
from app.core.errors import InputError
from app.schemas.publish import PublishRequest, PublishResponse, UsageResponse
from app.services.artifact_store import ArtifactStore
from app.services.dialog_sessions import normalize_user_id
from app.services.publication import ObjectStoragePublisher
from app.services.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/publish", response_model=PublishResponse)
def publish(
    publish_in: PublishRequest,
    store: ArtifactStore = Depends(get_artifact_store),
    publisher: ObjectStoragePublisher = Depends(get_object_storage),
):
    if not publish_in.filename:
        raise HTTPException(status_code=400, detail="filename is required")
    if not publish_in.user_id:
        raise HTTPException(status_code=400, detail="user_id is required")

    try:
        html = store.read_artifact(publish_in.filename)
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    result = publisher.publish(publish_in.filename, html)
    if not result.success:
        logger.error("Publishing %s for %s failed: %s", publish_in.filename, publish_in.user_id, result.error)
        return PublishResponse(
            status="error",
            message=f"Deployment of {publish_in.filename} failed: {result.error}",
            filename=publish_in.filename,
            user_id=publish_in.user_id,
        )

    logger.info("Published %s for %s to %s", publish_in.filename, publish_in.user_id, result.remote_path)
    return PublishResponse(
        status="success",
        message=f"File {publish_in.filename} successfully deployed",
        filename=publish_in.filename,
        user_id=publish_in.user_id,
        remote_path=result.remote_path,
    )


@router.get("/usage/{user_id}", response_model=UsageResponse)
def usage(
    user_id: str,
    date_: Optional[date] = Query(None, alias="date"),
    repository: Repository = Depends(get_repository),
    cancel: CancelToken = Depends(get_cancel_token),
):
    day = (date_ or date.today()).isoformat()
    key = normalize_user_id(user_id)
    return UsageResponse(user_id=key, date=day, count=repository.get_request_count(key, day, cancel=cancel))

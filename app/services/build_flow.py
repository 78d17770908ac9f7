import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.cancellation import CancelToken
from app.core.errors import (
    AppError,
    ArtifactIndexError,
    InputError,
    PersistenceError,
)
from app.schemas.build import BUILD_ERROR, BUILD_PARTIAL, BUILD_SUCCESS, BuildRequest, BuildResponse
from app.services.artifact_store import ArtifactStore
from app.services.publication import RepositoryPusher
from app.services.website_pipeline import PipelineRunner

logger = logging.getLogger(__name__)


def _project_name(message: str) -> str:
    first_line = message.strip().splitlines()[0] if message.strip() else ""
    return first_line[:80] or "website"


class BuildFlow:
    """
    One /build request: run the pipeline, persist the page, optionally push it.

    The pipeline result is always written before anything else can fail, so a
    push failure still leaves the file in ``result_dir`` (``partial_success``).
    """

    def __init__(
        self,
        runner: PipelineRunner,
        store: ArtifactStore,
        pusher: Optional[RepositoryPusher] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.runner = runner
        self.store = store
        self.pusher = pusher
        self.clock = clock

    def run(self, request: BuildRequest, push: bool = False, cancel: Optional[CancelToken] = None) -> BuildResponse:
        requested_at = self.clock()
        name = _project_name(request.message)

        try:
            html = self.runner(request.message, request.requirements, cancel)
        except InputError:
            raise
        except AppError as e:
            logger.error("Website generation failed: %s", e)
            self._record_failure(name, request, cancel)
            return BuildResponse(status=BUILD_ERROR, message=f"Ошибка генерации сайта: {e}")

        try:
            stored = self.store.persist(
                html,
                requested_at,
                chat_id=request.chat_id,
                name=name,
                description=request.message,
                cancel=cancel,
            )
        except ArtifactIndexError as e:
            return BuildResponse(
                status=BUILD_ERROR,
                message=f"Сайт сохранен локально, но не записан в базу: {e}",
                file=e.filename,
            )
        except PersistenceError as e:
            return BuildResponse(status=BUILD_ERROR, message=f"Ошибка сохранения файла: {e}")

        if not push or self.pusher is None:
            return BuildResponse(
                status=BUILD_SUCCESS,
                message="Сайт успешно сгенерирован и сохранен",
                file=stored.filename,
            )

        try:
            if cancel is not None:
                cancel.raise_if_cancelled()
            github_url = self.pusher.push(
                stored.absolute_path,
                stored.filename,
                f"Add generated website {stored.filename}",
            )
        except AppError as e:
            logger.warning("Push of %s failed: %s", stored.filename, e)
            return BuildResponse(
                status=BUILD_PARTIAL,
                message=f"Сайт сгенерирован и сохранен локально, но не удалось отправить в GitHub: {e}",
                file=stored.filename,
            )

        return BuildResponse(
            status=BUILD_SUCCESS,
            message="Сайт успешно сгенерирован, сохранен и отправлен в GitHub",
            file=stored.filename,
            github_url=github_url,
        )

    def _record_failure(self, name: str, request: BuildRequest, cancel: Optional[CancelToken]) -> None:
        try:
            self.store.record_failure(name, request.message, chat_id=request.chat_id, cancel=cancel)
        except (AppError, SQLAlchemyError) as e:
            logger.warning("Could not record failed build %r: %s", name, e)

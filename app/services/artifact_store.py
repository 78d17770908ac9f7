import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.cancellation import CancelToken
from app.core.errors import AppError, ArtifactIndexError, ArtifactWriteError, InputError
from app.models.project import PROJECT_COMPLETED, PROJECT_FAILED, Project
from app.services.repository import Repository

logger = logging.getLogger(__name__)

FILENAME_FORMAT = "%Y-%m-%d_%H-%M-%S"
DIR_MODE = 0o755
FILE_MODE = 0o644


@dataclass
class StoredArtifact:
    filename: str
    absolute_path: str
    project: Project


def artifact_filename(requested_at: datetime) -> str:
    return requested_at.strftime(FILENAME_FORMAT) + ".html"


class ArtifactStore:
    """
    Generated pages on disk plus the Project rows that index them.

    Files are written first and indexed second; a failed index leaves the
    file in place. Filenames have one-second resolution, so callers that may
    build twice within the same second have to serialize themselves.
    """

    def __init__(self, result_dir: str, repository: Repository):
        self.result_dir = Path(result_dir)
        self.repository = repository

    def _write(self, filename: str, html: str) -> str:
        try:
            self.result_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            path = (self.result_dir / filename).resolve()
            data = html.encode("utf-8")
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            try:
                written = os.write(fd, data)
            finally:
                os.close(fd)
        except OSError as exc:
            raise ArtifactWriteError(f"failed to save {filename}: {exc}") from exc
        if written != len(data):
            raise ArtifactWriteError(f"short write for {filename}: {written} of {len(data)} bytes")
        return str(path)

    def persist(
        self,
        html: str,
        requested_at: datetime,
        chat_id: Optional[int] = None,
        name: Optional[str] = None,
        description: str = "",
        cancel: Optional[CancelToken] = None,
    ) -> StoredArtifact:
        filename = artifact_filename(requested_at)
        absolute_path = self._write(filename, html)
        logger.info("Saved artifact %s (%d chars)", absolute_path, len(html))

        project_id = None
        try:
            if chat_id is None:
                chat_id = self.repository.create_chat(f"Website {filename}", cancel=cancel).id
            project = self.repository.create_project(
                chat_id, name or filename, description, absolute_path, cancel=cancel
            )
            if project is None:
                raise ArtifactIndexError(f"chat {chat_id} not found, {filename} is not indexed", filename)
            project_id = project.id
            project = self.repository.update_project_status(project_id, PROJECT_COMPLETED, cancel=cancel)
        except ArtifactIndexError:
            raise
        except (SQLAlchemyError, AppError) as exc:
            self.repository.session.rollback()
            logger.error("Artifact %s written but not indexed: %s", filename, exc)
            if project_id is not None:
                self._mark_failed(project_id)
            raise ArtifactIndexError(f"failed to index {filename}: {exc}", filename) from exc

        return StoredArtifact(filename=filename, absolute_path=absolute_path, project=project)

    def _mark_failed(self, project_id: int) -> None:
        # no cancel token here: the request may already be cancelled
        try:
            self.repository.update_project_status(project_id, PROJECT_FAILED)
        except SQLAlchemyError as exc:
            self.repository.session.rollback()
            logger.warning("Project %s left in building state: %s", project_id, exc)

    def record_failure(
        self,
        name: str,
        description: str = "",
        chat_id: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Optional[Project]:
        """Index a build whose pipeline errored; there is no file behind it."""
        if chat_id is None:
            chat_id = self.repository.create_chat(name, cancel=cancel).id
        project = self.repository.create_project(chat_id, name, description, "", cancel=cancel)
        if project is None:
            return None
        return self.repository.update_project_status(project.id, PROJECT_FAILED, cancel=cancel)

    def _check_file(self, project: Optional[Project], cancel: Optional[CancelToken]) -> Optional[Project]:
        if project is None:
            return None
        if project.status != PROJECT_FAILED and not (project.file_path and os.path.isfile(project.file_path)):
            logger.warning("Project %s points at missing file %r, marking failed", project.id, project.file_path)
            project = self.repository.update_project_status(project.id, PROJECT_FAILED, cancel=cancel)
        return project

    def resolve_project(self, project_id: int, cancel: Optional[CancelToken] = None) -> Optional[Project]:
        """Fetch a project; one whose file has gone missing is marked failed."""
        return self._check_file(self.repository.get_project(project_id, cancel=cancel), cancel)

    def latest_project(self, cancel: Optional[CancelToken] = None) -> Optional[Project]:
        return self._check_file(self.repository.latest_project(cancel=cancel), cancel)

    def list_projects(self, chat_id: int, cancel: Optional[CancelToken] = None) -> List[Project]:
        return [self._check_file(p, cancel) for p in self.repository.list_projects(chat_id, cancel=cancel)]

    def read_artifact(self, filename: str) -> str:
        base = self.result_dir.resolve()
        path = (base / filename).resolve()
        if path.parent != base:
            raise InputError(f"invalid filename: {filename}")
        if not path.is_file():
            raise FileNotFoundError(f"File {filename} not found in result directory")
        return path.read_text(encoding="utf-8")

"""
Data access for chats, messages, projects, images and the daily request counter.

Every method takes the request's ``CancelToken`` and checks it before touching
the database. Absent rows come back as ``None``; driver failures propagate as
SQLAlchemy exceptions.
"""

from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.cancellation import CancelToken
from app.core.clock import utc_now
from app.models.chat import Chat
from app.models.chat_message import ChatMessage
from app.models.image import Image
from app.models.project import PROJECT_STATUSES, Project
from app.models.user_request import UserRequestCount


def _check(cancel: Optional[CancelToken]) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def _save(self, row):
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def _delete(self, model, row_id: int, cancel: Optional[CancelToken]) -> bool:
        _check(cancel)
        row = self.session.get(model, row_id)
        if not row:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def _touch_chat(self, chat: Chat) -> None:
        chat.updated_at = utc_now()
        self.session.add(chat)

    # --- chats ---

    def create_chat(self, title: str, cancel: Optional[CancelToken] = None) -> Chat:
        _check(cancel)
        now = utc_now()
        return self._save(Chat(title=title, created_at=now, updated_at=now))

    def get_chat(self, chat_id: int, cancel: Optional[CancelToken] = None) -> Optional[Chat]:
        _check(cancel)
        return self.session.get(Chat, chat_id)

    def list_chats(self, limit: int = 50, offset: int = 0, cancel: Optional[CancelToken] = None) -> List[Chat]:
        _check(cancel)
        return list(self.session.exec(
            select(Chat)
            .order_by(Chat.updated_at.desc(), Chat.id.desc())
            .offset(offset)
            .limit(limit)
        ).all())

    def update_chat(self, chat_id: int, title: str, cancel: Optional[CancelToken] = None) -> Optional[Chat]:
        _check(cancel)
        chat = self.session.get(Chat, chat_id)
        if not chat:
            return None
        chat.title = title
        self._touch_chat(chat)
        return self._save(chat)

    def delete_chat(self, chat_id: int, cancel: Optional[CancelToken] = None) -> bool:
        return self._delete(Chat, chat_id, cancel)

    # --- messages ---

    def create_message(
        self, chat_id: int, role: str, content: str, cancel: Optional[CancelToken] = None
    ) -> Optional[ChatMessage]:
        _check(cancel)
        chat = self.session.get(Chat, chat_id)
        if not chat:
            return None
        self._touch_chat(chat)
        return self._save(ChatMessage(chat_id=chat_id, role=role, content=content, sent_at=utc_now()))

    def list_messages(
        self, chat_id: int, limit: int = 100, offset: int = 0, cancel: Optional[CancelToken] = None
    ) -> List[ChatMessage]:
        _check(cancel)
        return list(self.session.exec(
            select(ChatMessage)
            .where(ChatMessage.chat_id == chat_id)
            .order_by(ChatMessage.sent_at, ChatMessage.id)
            .offset(offset)
            .limit(limit)
        ).all())

    def get_message(self, message_id: int, cancel: Optional[CancelToken] = None) -> Optional[ChatMessage]:
        _check(cancel)
        return self.session.get(ChatMessage, message_id)

    def delete_message(self, message_id: int, cancel: Optional[CancelToken] = None) -> bool:
        return self._delete(ChatMessage, message_id, cancel)

    # --- projects ---

    def create_project(
        self,
        chat_id: int,
        name: str,
        description: str = "",
        file_path: str = "",
        cancel: Optional[CancelToken] = None,
    ) -> Optional[Project]:
        _check(cancel)
        if not self.session.get(Chat, chat_id):
            return None
        now = utc_now()
        return self._save(Project(
            chat_id=chat_id,
            name=name,
            description=description,
            file_path=file_path,
            created_at=now,
            updated_at=now,
        ))

    def get_project(self, project_id: int, cancel: Optional[CancelToken] = None) -> Optional[Project]:
        _check(cancel)
        return self.session.get(Project, project_id)

    def list_projects(self, chat_id: int, cancel: Optional[CancelToken] = None) -> List[Project]:
        _check(cancel)
        return list(self.session.exec(
            select(Project)
            .where(Project.chat_id == chat_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
        ).all())

    def latest_project(self, cancel: Optional[CancelToken] = None) -> Optional[Project]:
        _check(cancel)
        return self.session.exec(
            select(Project).order_by(Project.created_at.desc(), Project.id.desc())
        ).first()

    def update_project_status(
        self, project_id: int, status: str, cancel: Optional[CancelToken] = None
    ) -> Optional[Project]:
        if status not in PROJECT_STATUSES:
            raise ValueError(f"unknown project status: {status}")
        _check(cancel)
        project = self.session.get(Project, project_id)
        if not project:
            return None
        project.status = status
        project.updated_at = utc_now()
        return self._save(project)

    def delete_project(self, project_id: int, cancel: Optional[CancelToken] = None) -> bool:
        return self._delete(Project, project_id, cancel)

    # --- images ---

    def create_image(
        self, chat_id: int, prompt: str, file_path: str, cancel: Optional[CancelToken] = None
    ) -> Optional[Image]:
        _check(cancel)
        if not self.session.get(Chat, chat_id):
            return None
        return self._save(Image(chat_id=chat_id, prompt=prompt, file_path=file_path, created_at=utc_now()))

    def get_image(self, image_id: int, cancel: Optional[CancelToken] = None) -> Optional[Image]:
        _check(cancel)
        return self.session.get(Image, image_id)

    def list_images(self, chat_id: int, cancel: Optional[CancelToken] = None) -> List[Image]:
        _check(cancel)
        return list(self.session.exec(
            select(Image)
            .where(Image.chat_id == chat_id)
            .order_by(Image.created_at.desc(), Image.id.desc())
        ).all())

    def delete_image(self, image_id: int, cancel: Optional[CancelToken] = None) -> bool:
        return self._delete(Image, image_id, cancel)

    # --- daily request counter ---

    def get_request_count(self, user_id: str, request_date: str, cancel: Optional[CancelToken] = None) -> int:
        _check(cancel)
        row = self.session.exec(
            select(UserRequestCount)
            .where(UserRequestCount.user_id == user_id)
            .where(UserRequestCount.request_date == request_date)
        ).first()
        return row.request_count if row else 0

    def increment_request_count(self, user_id: str, request_date: str, cancel: Optional[CancelToken] = None) -> int:
        """Bump the counter for ``(user_id, request_date)``, creating it at 1. Returns the new value."""
        _check(cancel)
        for attempt in range(2):
            now = utc_now()
            result = self.session.exec(
                update(UserRequestCount)
                .where(UserRequestCount.user_id == user_id)
                .where(UserRequestCount.request_date == request_date)
                .values(request_count=UserRequestCount.request_count + 1, updated_at=now)
            )
            if result.rowcount == 0:
                self.session.add(UserRequestCount(
                    user_id=user_id,
                    request_date=request_date,
                    request_count=1,
                    created_at=now,
                    updated_at=now,
                ))
            try:
                self.session.commit()
            except IntegrityError:
                # another request inserted the row first; the UPDATE will hit it now
                self.session.rollback()
                if attempt:
                    raise
                continue
            break
        return self.get_request_count(user_id, request_date)

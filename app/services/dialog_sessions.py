import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from app.schemas.dialog import DialogMessage, DialogSession
from app.services.requirements_flow import advance

DEFAULT_USER_ID = "default"

ROLE_LABELS = {
    "ru": {"user": "Пользователь", "assistant": "Ассистент"},
    "en": {"user": "User", "assistant": "Assistant"},
}


class _ReadWriteLock:
    """Many readers or one writer; writers are not starved by new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def normalize_user_id(user_id: Optional[str]) -> str:
    if user_id is None or not user_id.strip():
        return DEFAULT_USER_ID
    return user_id


class DialogSessionStore:
    """
    In-memory dialog sessions keyed by user id.

    One instance lives for the lifetime of the application (see ``create_app``);
    nothing is persisted, a restart starts every user from scratch.
    """

    def __init__(self):
        self._sessions: Dict[str, DialogSession] = {}
        self._lock = _ReadWriteLock()

    def get_or_create(self, user_id: Optional[str]) -> DialogSession:
        key = normalize_user_id(user_id)
        with self._lock.exclusive():
            session = self._sessions.get(key)
            if session is None:
                session = DialogSession(user_id=key)
                self._sessions[key] = session
            return session

    def append_message(self, session: DialogSession, role: str, content: str) -> None:
        with self._lock.exclusive():
            session.history.append(DialogMessage(role=role, content=content))

    def history_as_string(self, session: DialogSession, lang: str = "ru") -> str:
        labels = ROLE_LABELS.get(lang, ROLE_LABELS["ru"])
        with self._lock.shared():
            return "".join(
                f"{labels['user'] if m.role == 'user' else labels['assistant']}: {m.content}\n"
                for m in session.history
            )

    def advance(self, session: DialogSession, user_message: str) -> None:
        with self._lock.exclusive():
            advance(session, user_message)

    def snapshot(self, session: DialogSession) -> DialogSession:
        with self._lock.shared():
            return session.model_copy(deep=True)

    def reset(self, user_id: Optional[str]) -> None:
        with self._lock.exclusive():
            self._sessions.pop(normalize_user_id(user_id), None)

    def clear(self) -> None:
        with self._lock.exclusive():
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock.shared():
            return len(self._sessions)

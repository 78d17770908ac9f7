import logging
from typing import TYPE_CHECKING, Optional

from app.core.cancellation import CancelToken
from app.core.errors import EmptyInput
from app.schemas.dialog import DialogSession, Requirements
from app.utils.prompt_loader import load_prompt

if TYPE_CHECKING:
    from app.services.dialog_sessions import DialogSessionStore
    from app.utils.llm_client import LLMClient

logger = logging.getLogger(__name__)

QUESTION_TARGET_AUDIENCE = "target_audience"
QUESTION_COMPLETE = "complete"

NOT_CAPTURED = "(ещё не указано)"

NEXT_QUESTIONS = {
    "": "узнай, какой сайт нужен пользователю (лендинг, портфолио, блог, интернет-магазин и т.д.).",
    QUESTION_TARGET_AUDIENCE: "узнай, кто целевая аудитория сайта.",
    QUESTION_COMPLETE: (
        "все основные требования собраны. Кратко подтверди их и предложи нажать "
        "«Собрать сайт» или добавить пожелания."
    ),
}


def advance(session: DialogSession, user_message: str) -> None:
    """
    Move the session one step along the fixed question sequence.

    The first turn is taken verbatim as the site type, the second as the
    target audience; every later turn is appended to the note. The caller
    holds the store lock.
    """
    reqs = session.requirements

    if not reqs.site_type and session.current_question == "":
        reqs.site_type = user_message
        session.current_question = QUESTION_TARGET_AUDIENCE
        return

    if not reqs.target_audience and session.current_question == QUESTION_TARGET_AUDIENCE:
        reqs.target_audience = user_message
        session.current_question = QUESTION_COMPLETE
        session.is_complete = True
        return

    if session.is_complete:
        if not reqs.note:
            reqs.note = user_message
        else:
            reqs.note += "; " + user_message


def build_gathering_prompt(history: str, requirements: Requirements, current_question: str = "") -> str:
    return load_prompt(
        "requirements_gathering.txt",
        site_type=requirements.site_type or NOT_CAPTURED,
        target_audience=requirements.target_audience or NOT_CAPTURED,
        note=requirements.note or NOT_CAPTURED,
        history=history.strip() or "(пусто)",
        next_question=NEXT_QUESTIONS.get(current_question, NEXT_QUESTIONS[QUESTION_COMPLETE]),
    )


def handle_ask(
    store: "DialogSessionStore",
    client: "LLMClient",
    user_id: Optional[str],
    message: str,
    cancel: Optional[CancelToken] = None,
) -> str:
    """One dialog turn: record the user message, ask the LLM, record the reply, advance."""
    if not message or not message.strip():
        raise EmptyInput()

    session = store.get_or_create(user_id)
    store.append_message(session, "user", message)

    history = store.history_as_string(session)
    snapshot = store.snapshot(session)
    system_prompt = build_gathering_prompt(history, snapshot.requirements, snapshot.current_question)

    # the store lock is not held across the LLM call
    reply = client.generate(message, system_prompt, cancel=cancel)

    store.append_message(session, "assistant", reply)
    store.advance(session, message)

    after = store.snapshot(session)
    logger.info(
        "Dialog %s: site_type=%r target_audience=%r question=%r complete=%s",
        after.user_id,
        after.requirements.site_type,
        after.requirements.target_audience,
        after.current_question,
        after.is_complete,
    )
    return reply


def expand_idea(client: "LLMClient", message: str, cancel: Optional[CancelToken] = None) -> str:
    """Expand a bare site idea ("лендинг", "блог", ...) into a technical brief."""
    return client.generate(message, load_prompt("idea_expansion.txt"), cancel=cancel)

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from app.core.cancellation import CancelToken
from app.core.clock import utc_now
from app.core.errors import OperationCancelled
from app.init_db import create_db_and_tables
from app.models.chat import Chat
from app.models.chat_message import ChatMessage
from app.models.image import Image
from app.models.project import PROJECT_BUILDING, PROJECT_COMPLETED, Project
from app.services.repository import Repository


@pytest.fixture
def repo():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_db_and_tables(engine)
    with Session(engine) as session:
        yield Repository(session)
    SQLModel.metadata.drop_all(engine)


def test_migration_is_idempotent():
    engine = create_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    create_db_and_tables(engine)


def test_chat_round_trip(repo):
    chat = repo.create_chat("Кофейня")
    fetched = repo.get_chat(chat.id)
    assert fetched.title == "Кофейня"
    assert fetched.created_at.replace(microsecond=0) == chat.created_at.replace(microsecond=0)


def test_missing_rows_are_none(repo):
    assert repo.get_chat(999) is None
    assert repo.get_message(999) is None
    assert repo.get_project(999) is None
    assert repo.get_image(999) is None
    assert repo.update_chat(999, "x") is None
    assert repo.create_message(999, "user", "x") is None
    assert repo.create_project(999, "p") is None
    assert repo.delete_chat(999) is False


def test_messages_listed_in_insertion_order(repo):
    chat = repo.create_chat("c")
    contents = [f"m{i}" for i in range(5)]
    for i, content in enumerate(contents):
        repo.create_message(chat.id, "user" if i % 2 == 0 else "assistant", content)

    listed = repo.list_messages(chat.id)
    assert [m.content for m in listed] == contents
    assert [m.content for m in repo.list_messages(chat.id, limit=2, offset=1)] == ["m1", "m2"]


def test_new_message_bumps_chat_in_listing(repo):
    first = repo.create_chat("first")
    second = repo.create_chat("second")
    assert repo.list_chats()[0].id == second.id

    repo.create_message(first.id, "user", "hello")
    assert repo.list_chats()[0].id == first.id


def test_project_status_lifecycle(repo):
    chat = repo.create_chat("c")
    project = repo.create_project(chat.id, "site", "desc", "/tmp/site.html")
    assert project.status == PROJECT_BUILDING

    updated = repo.update_project_status(project.id, PROJECT_COMPLETED)
    assert updated.status == PROJECT_COMPLETED
    assert repo.latest_project().id == project.id

    with pytest.raises(ValueError):
        repo.update_project_status(project.id, "published")


def test_deleting_chat_cascades(repo):
    chat = repo.create_chat("c")
    message_id = repo.create_message(chat.id, "user", "hi").id
    project_id = repo.create_project(chat.id, "site").id
    image_id = repo.create_image(chat.id, "кот", "/tmp/cat.png").id

    assert repo.delete_chat(chat.id) is True
    # drop cached rows so the lookups below hit the database
    repo.session.expunge_all()
    assert repo.get_message(message_id) is None
    assert repo.get_project(project_id) is None
    assert repo.get_image(image_id) is None
    assert repo.session.exec(select(ChatMessage)).all() == []
    assert repo.session.exec(select(Project)).all() == []
    assert repo.session.exec(select(Image)).all() == []


def test_images_and_projects_by_chat(repo):
    chat = repo.create_chat("c")
    other = repo.create_chat("other")
    repo.create_image(chat.id, "a", "/a.png")
    repo.create_image(other.id, "b", "/b.png")
    repo.create_project(chat.id, "p1")
    repo.create_project(chat.id, "p2")

    assert [i.prompt for i in repo.list_images(chat.id)] == ["a"]
    assert [p.name for p in repo.list_projects(chat.id)] == ["p2", "p1"]
    assert repo.delete_image(repo.list_images(other.id)[0].id) is True


def test_request_counter_counts_increments(repo):
    assert repo.get_request_count("u1", "2024-05-01") == 0
    for expected in range(1, 6):
        assert repo.increment_request_count("u1", "2024-05-01") == expected
    assert repo.get_request_count("u1", "2024-05-01") == 5
    assert repo.get_request_count("u1", "2024-05-02") == 0
    assert repo.get_request_count("u2", "2024-05-01") == 0


def test_cancelled_token_blocks_database_access(repo):
    token = CancelToken()
    token.cancel()
    with pytest.raises(OperationCancelled):
        repo.create_chat("c", cancel=token)
    assert repo.list_chats() == []


def test_timestamps_are_timezone_aware(repo):
    assert utc_now().tzinfo is not None
    assert Chat(title="x").created_at.tzinfo is not None

    before = utc_now()
    chat = repo.create_chat("c")
    repo.create_message(chat.id, "user", "hi")
    project = repo.update_project_status(repo.create_project(chat.id, "site").id, PROJECT_COMPLETED)
    assert project.status == PROJECT_COMPLETED
    # sqlite hands datetimes back without tzinfo
    assert repo.get_chat(chat.id).updated_at.replace(tzinfo=before.tzinfo) >= before.replace(microsecond=0)

from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool

from app.database import get_session
from app.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
SQLModel.metadata.create_all(engine)


def override_get_session():
    with Session(engine) as session:
        yield session


def setup_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    app.dependency_overrides[get_session] = override_get_session
    return TestClient(app)


def test_chat_crud():
    client = setup_db()

    response = client.post("/chats", json={"title": "Кофейня"})
    assert response.status_code == 201
    chat = response.json()
    assert chat["title"] == "Кофейня"

    assert client.get(f"/chats/{chat['id']}").json()["title"] == "Кофейня"

    renamed = client.put(f"/chats/{chat['id']}", json={"title": "Кафе"})
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Кафе"

    assert [c["id"] for c in client.get("/chats").json()] == [chat["id"]]

    assert client.delete(f"/chats/{chat['id']}").status_code == 204
    assert client.get(f"/chats/{chat['id']}").status_code == 404
    assert client.delete(f"/chats/{chat['id']}").status_code == 404
    app.dependency_overrides.clear()


def test_messages_in_order_and_not_found():
    client = setup_db()
    chat_id = client.post("/chats", json={"title": "c"}).json()["id"]

    for i, role in enumerate(["user", "assistant", "user"]):
        response = client.post(f"/chats/{chat_id}/messages", json={"role": role, "content": f"m{i}"})
        assert response.status_code == 201

    listed = client.get(f"/chats/{chat_id}/messages").json()
    assert [m["content"] for m in listed] == ["m0", "m1", "m2"]

    message_id = listed[0]["id"]
    assert client.get(f"/messages/{message_id}").json()["role"] == "user"
    assert client.delete(f"/messages/{message_id}").status_code == 204
    assert client.get(f"/messages/{message_id}").status_code == 404

    assert client.post("/chats/999/messages", json={"role": "user", "content": "x"}).status_code == 404
    assert client.get("/chats/999/messages").status_code == 404
    assert client.post(f"/chats/{chat_id}/messages", json={"role": "system", "content": "x"}).status_code == 422
    app.dependency_overrides.clear()


def test_projects_and_images():
    client = setup_db()
    chat_id = client.post("/chats", json={"title": "c"}).json()["id"]

    project = client.post(f"/chats/{chat_id}/projects", json={"name": "site", "description": "d"}).json()
    assert project["status"] == "building"

    updated = client.put(f"/projects/{project['id']}/status", json={"status": "completed"})
    assert updated.json()["status"] == "completed"
    assert client.put(f"/projects/{project['id']}/status", json={"status": "shipped"}).status_code == 422

    # no file behind it, so reading it back marks it failed
    assert client.get(f"/projects/{project['id']}").json()["status"] == "failed"
    assert [p["id"] for p in client.get(f"/chats/{chat_id}/projects").json()] == [project["id"]]

    image = client.post(f"/chats/{chat_id}/images", json={"prompt": "кот", "file_path": "/img/cat.png"}).json()
    assert client.get(f"/images/{image['id']}").json()["prompt"] == "кот"
    assert len(client.get(f"/chats/{chat_id}/images").json()) == 1

    assert client.delete(f"/chats/{chat_id}").status_code == 204
    assert client.get(f"/projects/{project['id']}").status_code == 404
    assert client.get(f"/images/{image['id']}").status_code == 404
    assert client.delete(f"/images/{image['id']}").status_code == 404
    assert client.delete(f"/projects/{project['id']}").status_code == 404
    app.dependency_overrides.clear()


def test_listing_projects_marks_missing_files_failed():
    client = setup_db()
    chat_id = client.post("/chats", json={"title": "c"}).json()["id"]
    project = client.post(
        f"/chats/{chat_id}/projects",
        json={"name": "site", "file_path": "/nonexistent/site.html"},
    ).json()
    client.put(f"/projects/{project['id']}/status", json={"status": "completed"})

    listed = client.get(f"/chats/{chat_id}/projects").json()
    assert [(p["id"], p["status"]) for p in listed] == [(project["id"], "failed")]
    app.dependency_overrides.clear()

"""Post authoring, likes, comments and shares."""
from __future__ import annotations

import os
import uuid
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete, func, select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_talenta.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from talenta.database import Base, SessionLocal, engine  # noqa: E402
from talenta.main import app  # noqa: E402
from talenta.models import Comment, Follow, Like, Notification, Post, Profile  # noqa: E402
from talenta.services import get_current_user, get_optional_user, post_service, storage_service  # noqa: E402
from talenta.services.storage_service import StoredObject  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for model in (Notification, Like, Comment, Follow, Post, Profile):
            session.execute(delete(model))
        session.commit()
    yield


@pytest.fixture
def user_factory() -> Callable[[str], Profile]:
    def _factory(name: str) -> Profile:
        with SessionLocal() as session:
            profile = Profile(email=f"{name}@example.com", hashed_password="test-hash", full_name=name.title())
            session.add(profile)
            session.commit()
            session.refresh(profile)
            return profile

    return _factory


@pytest.fixture
def authed_client() -> Iterator[Callable[[Profile], TestClient]]:
    with TestClient(app) as client:
        def _with_user(user: Profile) -> TestClient:
            app.dependency_overrides[get_current_user] = lambda: user
            app.dependency_overrides[get_optional_user] = lambda: user
            return client

        yield _with_user
    app.dependency_overrides.clear()


@pytest.fixture
def fake_storage(monkeypatch) -> dict[str, list[str]]:
    calls: dict[str, list[str]] = {"uploaded": [], "deleted": []}

    async def _fake_upload(file, *, key, client=None):
        calls["uploaded"].append(key)
        return StoredObject(key=key, url=f"https://cdn.test/{key}", content_type=file.content_type, size=3)

    def _fake_delete(key, *, client=None):
        calls["deleted"].append(key)

    monkeypatch.setattr(storage_service, "upload_file", _fake_upload)
    monkeypatch.setattr(storage_service, "delete_object", _fake_delete)
    return calls


def _create_post(client: TestClient, **fields) -> dict:
    data = {"skill_category": "Cooking", "content": "Knife skills 101"}
    data.update(fields)
    response = client.post("/posts/", data=data)
    assert response.status_code == 201, response.text
    return response.json()


def _like_rows(post_id: str) -> int:
    with SessionLocal() as session:
        return session.scalar(select(func.count(Like.id)).where(Like.post_id == uuid.UUID(str(post_id)))) or 0


def _notifications(user: Profile, type_: str) -> list[Notification]:
    with SessionLocal() as session:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user.id, Notification.type == type_)
            .order_by(Notification.created_at)
        )
        return list(session.scalars(stmt))


def test_create_post_requires_content_or_media(authed_client, user_factory):
    client = authed_client(user_factory("author"))
    response = client.post("/posts/", data={"skill_category": "Cooking", "content": "   "})
    assert response.status_code == 400


def test_create_post_rejects_unknown_category(authed_client, user_factory):
    client = authed_client(user_factory("author"))
    response = client.post("/posts/", data={"skill_category": "Juggling", "content": "hi"})
    assert response.status_code == 422


def test_create_post_with_media_uploads_first(authed_client, user_factory, fake_storage):
    author = user_factory("author")
    client = authed_client(author)
    response = client.post(
        "/posts/",
        data={"skill_category": "Music", "content": "riff", "privacy_setting": "followers"},
        files={"file": ("clip.mp4", b"abc", "video/mp4")},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["media_type"] == "video"
    assert body["privacy_setting"] == "followers"
    assert len(fake_storage["uploaded"]) == 1
    key = fake_storage["uploaded"][0]
    assert key.startswith(f"posts/{author.id}/") and key.endswith(".mp4")
    assert body["media_url"] == f"https://cdn.test/{key}"


def test_create_post_rejects_unsupported_media_before_upload(authed_client, user_factory, fake_storage):
    client = authed_client(user_factory("author"))
    response = client.post(
        "/posts/",
        data={"skill_category": "Music"},
        files={"file": ("notes.txt", b"abc", "text/plain")},
    )
    assert response.status_code == 400
    assert fake_storage["uploaded"] == []


def test_create_post_rejects_oversized_media(authed_client, user_factory, fake_storage, monkeypatch):
    monkeypatch.setattr(post_service, "POST_MEDIA_MAX_BYTES", 2)
    client = authed_client(user_factory("author"))
    response = client.post(
        "/posts/",
        data={"skill_category": "Music"},
        files={"file": ("pic.png", b"abcdef", "image/png")},
    )
    assert response.status_code == 413
    assert fake_storage["uploaded"] == []


def test_like_is_idempotent_and_unlike_removes_row(authed_client, user_factory):
    author = user_factory("author")
    fan = user_factory("fan")
    post = _create_post(authed_client(author))
    client = authed_client(fan)

    first = client.put(f"/posts/{post['id']}/like")
    assert first.status_code == 200
    assert first.json()["likes_count"] == 1
    assert first.json()["user_liked"] is True
    assert first.json()["changed"] is True

    second = client.put(f"/posts/{post['id']}/like")
    assert second.json()["likes_count"] == 1
    assert second.json()["changed"] is False
    assert _like_rows(post["id"]) == 1

    removed = client.delete(f"/posts/{post['id']}/like")
    assert removed.json()["likes_count"] == 0
    assert removed.json()["user_liked"] is False
    assert _like_rows(post["id"]) == 0

    assert len(_notifications(author, "like")) == 1


def test_concurrent_duplicate_like_leaves_single_row(user_factory, monkeypatch):
    author = user_factory("author")
    fan = user_factory("fan")
    with SessionLocal() as session:
        post = Post(user_id=author.id, content="race", skill_category="Cooking")
        session.add(post)
        session.commit()
        post_id = post.id

    # Simulate two requests that both saw "not liked yet" before inserting.
    monkeypatch.setattr(post_service, "_find_like", lambda db, post_id, user_id: None)
    with SessionLocal() as session:
        first = post_service.set_post_like_state(session, post_id=post_id, user=fan, should_like=True)
    with SessionLocal() as session:
        second = post_service.set_post_like_state(session, post_id=post_id, user=fan, should_like=True)

    assert first["changed"] is True
    assert second["changed"] is False
    assert second["likes_count"] == 1
    assert _like_rows(str(post_id)) == 1
    assert len(_notifications(author, "like")) == 1


def test_toggle_like_flips_state(authed_client, user_factory):
    author = user_factory("author")
    post = _create_post(authed_client(author))
    client = authed_client(user_factory("fan"))

    assert client.post(f"/posts/{post['id']}/like/toggle").json()["user_liked"] is True
    assert client.post(f"/posts/{post['id']}/like/toggle").json()["user_liked"] is False
    assert _like_rows(post["id"]) == 0


def test_liking_own_post_creates_no_notification(authed_client, user_factory):
    author = user_factory("author")
    client = authed_client(author)
    post = _create_post(client)
    client.put(f"/posts/{post['id']}/like")
    assert _notifications(author, "like") == []


def test_like_unknown_post_returns_404(authed_client, user_factory):
    client = authed_client(user_factory("fan"))
    response = client.put("/posts/00000000-0000-0000-0000-000000000000/like")
    assert response.status_code == 404


def test_comments_are_listed_oldest_first_and_notify_owner(authed_client, user_factory):
    author = user_factory("author")
    fan = user_factory("fan")
    post = _create_post(authed_client(author))
    client = authed_client(fan)

    first = client.post(f"/posts/{post['id']}/comments", json={"content": "  first!  "})
    assert first.status_code == 201
    assert first.json()["content"] == "first!"
    assert first.json()["author"]["full_name"] == "Fan"
    client.post(f"/posts/{post['id']}/comments", json={"content": "second"})

    listing = client.get(f"/posts/{post['id']}/comments").json()["items"]
    assert [item["content"] for item in listing] == ["first!", "second"]

    notes = _notifications(author, "comment")
    assert len(notes) == 2
    assert notes[0].title == "New Comment"
    assert notes[0].related_user_id == fan.id

    too_long = client.post(f"/posts/{post['id']}/comments", json={"content": "x" * 501})
    assert too_long.status_code == 422


def test_share_increments_counter(authed_client, user_factory):
    author = user_factory("author")
    post = _create_post(authed_client(author))
    client = authed_client(user_factory("fan"))

    assert client.post(f"/posts/{post['id']}/share").json()["shares_count"] == 1
    assert client.post(f"/posts/{post['id']}/share").json()["shares_count"] == 2


def test_only_owner_can_edit_or_delete(authed_client, user_factory, fake_storage):
    author = user_factory("author")
    intruder = user_factory("intruder")
    post = authed_client(author).post(
        "/posts/",
        data={"skill_category": "Art & Design", "content": "sketch"},
        files={"file": ("sketch.png", b"png", "image/png")},
    ).json()

    assert authed_client(intruder).patch(f"/posts/{post['id']}", json={"content": "mine now"}).status_code == 403
    assert authed_client(intruder).delete(f"/posts/{post['id']}").status_code == 403

    client = authed_client(author)
    edited = client.patch(f"/posts/{post['id']}", json={"content": "final sketch"})
    assert edited.status_code == 200
    assert edited.json()["content"] == "final sketch"
    assert [note.title for note in _notifications(author, "content")] == ["Post Updated"]

    assert client.delete(f"/posts/{post['id']}").status_code == 204
    assert client.get(f"/posts/{post['id']}").status_code == 404
    assert fake_storage["deleted"] == fake_storage["uploaded"]
    assert sorted(note.title for note in _notifications(author, "content")) == ["Post Deleted", "Post Updated"]


def test_deleting_post_removes_its_likes_and_comments(authed_client, user_factory):
    author = user_factory("author")
    fan = user_factory("fan")
    post = _create_post(authed_client(author))
    fan_client = authed_client(fan)
    fan_client.put(f"/posts/{post['id']}/like")
    fan_client.post(f"/posts/{post['id']}/comments", json={"content": "nice"})

    assert authed_client(author).delete(f"/posts/{post['id']}").status_code == 204
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Like.id))) == 0
        assert session.scalar(select(func.count(Comment.id))) == 0


def test_private_post_is_hidden_from_other_users(authed_client, user_factory):
    author = user_factory("author")
    post = _create_post(authed_client(author), privacy_setting="private")
    client = authed_client(user_factory("stranger"))
    assert client.get(f"/posts/{post['id']}").status_code == 404
    assert client.put(f"/posts/{post['id']}/like").status_code == 404

"""Notification inbox: listing, read state and unread summary."""
from __future__ import annotations

import os
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_talenta.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from talenta.database import Base, SessionLocal, engine  # noqa: E402
from talenta.main import app  # noqa: E402
from talenta.models import Message, Notification, Profile  # noqa: E402
from talenta.services import add_notification, get_current_user, notify_user  # noqa: E402
from talenta.services.notification_service import NotificationType  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for model in (Notification, Message, Profile):
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
def notification_factory() -> Callable[..., Notification]:
    def _factory(user: Profile, *, title: str = "New Like", actor: Profile | None = None) -> Notification:
        with SessionLocal() as session:
            return add_notification(
                session,
                user_id=user.id,
                type_=NotificationType.LIKE,
                title=title,
                message="Someone liked your post",
                related_user_id=actor.id if actor else None,
            )

    return _factory


@pytest.fixture
def authed_client() -> Iterator[Callable[[Profile], TestClient]]:
    with TestClient(app) as client:
        def _with_user(user: Profile) -> TestClient:
            app.dependency_overrides[get_current_user] = lambda: user
            return client

        yield _with_user
    app.dependency_overrides.clear()


def test_list_returns_newest_first_with_related_user(authed_client, user_factory, notification_factory):
    owner = user_factory("owner")
    actor = user_factory("actor")
    notification_factory(owner, title="first")
    notification_factory(owner, title="second", actor=actor)

    body = authed_client(owner).get("/notifications/").json()
    assert body["unread_count"] == 2
    assert [item["title"] for item in body["items"]] == ["second", "first"]
    assert body["items"][0]["related_user"]["full_name"] == "Actor"
    assert body["items"][1]["related_user"] is None


def test_mark_one_read_only_touches_own_notification(authed_client, user_factory, notification_factory):
    owner = user_factory("owner")
    other = user_factory("other")
    mine = notification_factory(owner)
    notification_factory(owner)
    theirs = notification_factory(other)

    response = authed_client(owner).post(f"/notifications/{mine.id}/read")
    assert response.status_code == 200
    assert response.json()["read"] is True
    assert authed_client(owner).get("/notifications/").json()["unread_count"] == 1

    forbidden = authed_client(owner).post(f"/notifications/{theirs.id}/read")
    assert forbidden.status_code == 404
    assert authed_client(other).get("/notifications/").json()["unread_count"] == 1


def test_mark_all_read(authed_client, user_factory, notification_factory):
    owner = user_factory("owner")
    other = user_factory("other")
    for _ in range(3):
        notification_factory(owner)
    notification_factory(other)

    response = authed_client(owner).post("/notifications/read-all")
    assert response.status_code == 200
    assert response.json()["message"].startswith("3 ")
    assert authed_client(owner).get("/notifications/").json()["unread_count"] == 0
    assert authed_client(other).get("/notifications/").json()["unread_count"] == 1


def test_unread_summary_counts_notifications_and_messages(authed_client, user_factory, notification_factory):
    owner = user_factory("owner")
    friend = user_factory("friend")
    notification_factory(owner)
    with SessionLocal() as session:
        session.add_all(
            [
                Message(sender_id=friend.id, receiver_id=owner.id, content="hi"),
                Message(sender_id=friend.id, receiver_id=owner.id, content="there", read=True),
                Message(sender_id=owner.id, receiver_id=friend.id, content="yo"),
            ]
        )
        session.commit()

    summary = authed_client(owner).get("/notifications/summary").json()
    assert summary == {"unread_notifications": 1, "unread_messages": 1}


def test_notify_user_skips_self_notifications(user_factory):
    owner = user_factory("owner")
    with SessionLocal() as session:
        result = notify_user(
            session,
            user_id=owner.id,
            actor_id=owner.id,
            type_=NotificationType.LIKE,
            title="New Like",
            message="Someone liked your post",
        )
    assert result is None


def test_notify_user_swallows_storage_errors(user_factory, monkeypatch):
    from sqlalchemy.exc import SQLAlchemyError

    from talenta.services import notification_service

    owner = user_factory("owner")
    actor = user_factory("actor")

    def _boom(*args, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(notification_service, "add_notification", _boom)
    with SessionLocal() as session:
        result = notification_service.notify_user(
            session,
            user_id=owner.id,
            actor_id=actor.id,
            type_=NotificationType.FOLLOW,
            title="New Follower",
            message="Actor started following you",
        )
    assert result is None


def test_notifications_require_authentication():
    with TestClient(app) as client:
        assert client.get("/notifications/").status_code == 401

"""Feed ordering, windowing and like annotation."""
from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_talenta.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from talenta.database import Base, SessionLocal, engine  # noqa: E402
from talenta.main import app  # noqa: E402
from talenta.models import Comment, Like, Notification, Post, Profile  # noqa: E402
from talenta.services import feed_service, get_optional_user  # noqa: E402

NOW = datetime.now(timezone.utc)


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for model in (Notification, Like, Comment, Post, Profile):
            session.execute(delete(model))
        session.commit()
    yield


@pytest.fixture
def user_factory() -> Callable[..., Profile]:
    def _factory(name: str) -> Profile:
        with SessionLocal() as session:
            profile = Profile(email=f"{name}@example.com", hashed_password="test-hash", full_name=name.title())
            session.add(profile)
            session.commit()
            session.refresh(profile)
            return profile

    return _factory


@pytest.fixture
def post_factory() -> Callable[..., Post]:
    def _factory(
        author: Profile,
        *,
        age: timedelta = timedelta(0),
        likers: tuple[Profile, ...] = (),
        privacy: str = "public",
        category: str = "Cooking",
    ) -> Post:
        with SessionLocal() as session:
            post = Post(
                user_id=author.id,
                content=f"post {uuid.uuid4().hex[:6]}",
                skill_category=category,
                privacy_setting=privacy,
                created_at=NOW - age,
            )
            session.add(post)
            session.flush()
            for liker in likers:
                session.add(Like(post_id=post.id, user_id=liker.id))
            session.commit()
            session.refresh(post)
            return post

    return _factory


@pytest.fixture
def client() -> Iterator[Callable[[Profile | None], TestClient]]:
    with TestClient(app) as test_client:
        def _as(viewer: Profile | None) -> TestClient:
            app.dependency_overrides[get_optional_user] = lambda: viewer
            return test_client

        yield _as
    app.dependency_overrides.clear()


def test_recent_feed_is_newest_first_and_public_only(client, user_factory, post_factory):
    author = user_factory("chef")
    oldest = post_factory(author, age=timedelta(hours=3))
    newest = post_factory(author, age=timedelta(minutes=1))
    middle = post_factory(author, age=timedelta(hours=1))
    post_factory(author, privacy="followers")
    post_factory(author, privacy="private")

    response = client(None).get("/posts/feed", params={"sort": "recent"})
    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["id"] for item in items] == [str(newest.id), str(middle.id), str(oldest.id)]
    created = [item["created_at"] for item in items]
    assert created == sorted(created, reverse=True)
    assert items[0]["author"]["full_name"] == "Chef"
    assert all(item["user_liked"] is False for item in items)


def test_popular_feed_orders_by_likes_over_all_time(client, user_factory, post_factory):
    author = user_factory("author")
    fans = [user_factory(f"fan{i}") for i in range(3)]
    ancient = post_factory(author, age=timedelta(days=60), likers=tuple(fans))
    recent_one = post_factory(author, age=timedelta(hours=2), likers=(fans[0],))
    recent_none = post_factory(author, age=timedelta(hours=1))

    items = client(None).get("/posts/feed", params={"sort": "popular"}).json()["items"]
    assert [item["id"] for item in items] == [str(ancient.id), str(recent_one.id), str(recent_none.id)]
    likes = [item["likes_count"] for item in items]
    assert likes == sorted(likes, reverse=True) == [3, 1, 0]


def test_trending_feed_excludes_posts_older_than_window(client, user_factory, post_factory):
    author = user_factory("author")
    fans = [user_factory(f"fan{i}") for i in range(3)]
    post_factory(author, age=timedelta(days=8), likers=tuple(fans))
    fresh = post_factory(author, age=timedelta(days=2), likers=(fans[0], fans[1]))
    fresher = post_factory(author, age=timedelta(hours=5))

    items = client(None).get("/posts/feed", params={"sort": "trending"}).json()["items"]
    assert [item["id"] for item in items] == [str(fresh.id), str(fresher.id)]
    cutoff = NOW - timedelta(days=7)
    for item in items:
        created = datetime.fromisoformat(item["created_at"])
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        assert created >= cutoff


def test_popular_ties_break_on_newest_first(client, user_factory, post_factory):
    author = user_factory("author")
    fan = user_factory("fan")
    older = post_factory(author, age=timedelta(hours=4), likers=(fan,))
    newer = post_factory(author, age=timedelta(hours=1), likers=(fan,))

    items = client(None).get("/posts/feed", params={"sort": "popular"}).json()["items"]
    assert [item["id"] for item in items] == [str(newer.id), str(older.id)]


def test_feed_marks_posts_liked_by_viewer(client, user_factory, post_factory):
    author = user_factory("author")
    viewer = user_factory("viewer")
    liked = post_factory(author, likers=(viewer,))
    post_factory(author, age=timedelta(minutes=5))

    items = client(viewer).get("/posts/feed").json()["items"]
    flags = {item["id"]: item["user_liked"] for item in items}
    assert flags[str(liked.id)] is True
    assert sum(flags.values()) == 1


def test_feed_filters_by_skill_category_and_limit(client, user_factory, post_factory):
    author = user_factory("author")
    for index in range(3):
        post_factory(author, category="Music", age=timedelta(minutes=index))
    post_factory(author, category="Gaming")

    music = client(None).get("/posts/feed", params={"skill_category": "Music"}).json()["items"]
    assert len(music) == 3
    assert {item["skill_category"] for item in music} == {"Music"}

    limited = client(None).get("/posts/feed", params={"limit": 2}).json()["items"]
    assert len(limited) == 2

    assert client(None).get("/posts/feed", params={"limit": 500}).status_code == 422
    assert client(None).get("/posts/feed", params={"sort": "random"}).status_code == 422


def test_feed_returns_empty_list_on_database_error(monkeypatch, user_factory, post_factory):
    post_factory(user_factory("author"))

    def _boom(*args, **kwargs):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(feed_service, "fetch_post_records", _boom)
    with SessionLocal() as session:
        assert feed_service.list_feed(session, sort="recent") == []


def test_list_feed_clamps_limit(user_factory, post_factory):
    author = user_factory("author")
    for index in range(3):
        post_factory(author, age=timedelta(minutes=index))
    with SessionLocal() as session:
        assert len(feed_service.list_feed(session, limit=0)) == 1
        assert len(feed_service.list_feed(session, limit=1000)) == 3

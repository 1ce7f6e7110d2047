"""Profile pages, editing, avatar uploads and portfolio references."""
from __future__ import annotations

import os
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete, func, select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_talenta.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from talenta.database import Base, SessionLocal, engine  # noqa: E402
from talenta.main import app  # noqa: E402
from talenta.models import Comment, Follow, Like, Notification, Post, Profile, Reference  # noqa: E402
from talenta.services import get_current_user, get_optional_user, profile_service, storage_service  # noqa: E402
from talenta.services.storage_service import StorageDeletionError, StorageUploadError, StoredObject  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for model in (Notification, Like, Comment, Follow, Reference, Post, Profile):
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
def authed_client() -> Iterator[Callable[[Profile | None], TestClient]]:
    with TestClient(app) as client:
        def _with_user(user: Profile | None) -> TestClient:
            if user is None:
                app.dependency_overrides.pop(get_current_user, None)
            else:
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
        return StoredObject(key=key, url=f"https://cdn.test/{key}", content_type=file.content_type, size=4)

    def _fake_delete(key, *, client=None):
        calls["deleted"].append(key)

    monkeypatch.setattr(storage_service, "upload_file", _fake_upload)
    monkeypatch.setattr(storage_service, "delete_object", _fake_delete)
    return calls


def _add_posts(author: Profile, *privacies: str) -> None:
    with SessionLocal() as session:
        for privacy in privacies:
            session.add(Post(user_id=author.id, content=f"{privacy} post", skill_category="Fitness", privacy_setting=privacy))
        session.commit()


def test_profile_counts_are_derived(authed_client, user_factory):
    owner = user_factory("owner")
    fans = [user_factory(f"fan{i}") for i in range(2)]
    with SessionLocal() as session:
        for fan in fans:
            session.add(Follow(follower_id=fan.id, following_id=owner.id))
        session.add(Follow(follower_id=owner.id, following_id=fans[0].id))
        session.commit()
    _add_posts(owner, "public", "private")

    body = authed_client(fans[0]).get(f"/profiles/{owner.id}").json()
    assert body["followers_count"] == 2
    assert body["following_count"] == 1
    assert body["posts_count"] == 2
    assert body["is_following"] is True
    assert "email" not in body

    me = authed_client(owner).get("/profiles/me").json()
    assert me["email"] == "owner@example.com"
    assert me["is_following"] is False


def test_unknown_profile_returns_404(authed_client):
    assert authed_client(None).get("/profiles/00000000-0000-0000-0000-000000000000").status_code == 404


def test_update_profile_fields(authed_client, user_factory):
    owner = user_factory("owner")
    client = authed_client(owner)

    response = client.put(
        "/profiles/me",
        data={"full_name": "Owner Name", "username": "owner", "bio": "I bake", "skill_tags": "Baking, Pastry,Baking"},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["full_name"] == "Owner Name"
    assert body["username"] == "owner"
    assert body["skill_tags"] == ["Baking", "Pastry"]

    cleared = client.put("/profiles/me", data={"bio": " ", "skill_tags": " "})
    assert cleared.status_code == 200
    assert cleared.json()["bio"] is None
    assert cleared.json()["skill_tags"] == []
    assert cleared.json()["username"] == "owner"


def test_update_profile_rejects_taken_username(authed_client, user_factory):
    first = user_factory("first")
    second = user_factory("second")
    assert authed_client(first).put("/profiles/me", data={"username": "taken"}).status_code == 200

    response = authed_client(second).put("/profiles/me", data={"username": "TAKEN"})
    assert response.status_code == 409


def test_update_profile_rejects_too_many_tags(authed_client, user_factory):
    client = authed_client(user_factory("owner"))
    tags = ",".join(f"tag{i}" for i in range(11))
    assert client.put("/profiles/me", data={"skill_tags": tags}).status_code == 422


def test_hireable_toggle(authed_client, user_factory):
    client = authed_client(user_factory("owner"))
    response = client.put("/profiles/me/hireable", json={"hireable": True})
    assert response.status_code == 200
    assert response.json()["hireable"] is True


def test_avatar_upload(authed_client, user_factory, fake_storage):
    owner = user_factory("owner")
    response = authed_client(owner).put(
        "/profiles/me",
        data={"bio": "new bio"},
        files={"avatar": ("me.png", b"\x89PNG", "image/png")},
    )
    assert response.status_code == 200, response.text
    key = fake_storage["uploaded"][0]
    assert key.startswith(f"avatars/{owner.id}/")
    assert response.json()["avatar_url"] == f"https://cdn.test/{key}"


def test_avatar_must_be_an_image(authed_client, user_factory, fake_storage):
    owner = user_factory("owner")
    response = authed_client(owner).put(
        "/profiles/me",
        data={"bio": "new bio"},
        files={"avatar": ("me.pdf", b"%PDF", "application/pdf")},
    )
    assert response.status_code == 400
    assert fake_storage["uploaded"] == []


def test_failed_avatar_upload_leaves_profile_untouched(authed_client, user_factory, monkeypatch):
    owner = user_factory("owner")

    async def _failing_upload(file, *, key, client=None):
        raise StorageUploadError("bucket unreachable")

    monkeypatch.setattr(storage_service, "upload_file", _failing_upload)
    response = authed_client(owner).put(
        "/profiles/me",
        data={"bio": "should not persist"},
        files={"avatar": ("me.png", b"\x89PNG", "image/png")},
    )
    assert response.status_code == 502
    with SessionLocal() as session:
        stored = session.get(Profile, owner.id)
        assert stored.bio is None
        assert stored.avatar_url is None


def test_avatar_is_discarded_when_profile_write_fails(authed_client, user_factory, fake_storage, monkeypatch):
    first = user_factory("first")
    second = user_factory("second")
    assert authed_client(first).put("/profiles/me", data={"username": "taken"}).status_code == 200

    # Let the lookup miss so the unique constraint rejects the write at commit.
    monkeypatch.setattr(profile_service, "_username_taken", lambda db, username, owner_id: False)
    response = authed_client(second).put(
        "/profiles/me",
        data={"username": "taken"},
        files={"avatar": ("me.png", b"\x89PNG", "image/png")},
    )
    assert response.status_code == 409
    assert len(fake_storage["uploaded"]) == 1
    assert fake_storage["deleted"] == fake_storage["uploaded"]
    with SessionLocal() as session:
        assert session.get(Profile, second.id).avatar_url is None


def test_profile_posts_respect_privacy(authed_client, user_factory):
    owner = user_factory("owner")
    follower = user_factory("follower")
    stranger = user_factory("stranger")
    with SessionLocal() as session:
        session.add(Follow(follower_id=follower.id, following_id=owner.id))
        session.commit()
    _add_posts(owner, "public", "followers", "private")

    def _visible(viewer: Profile | None) -> set[str]:
        items = authed_client(viewer).get(f"/profiles/{owner.id}/posts").json()["items"]
        return {item["privacy_setting"] for item in items}

    assert _visible(owner) == {"public", "followers", "private"}
    assert _visible(follower) == {"public", "followers"}
    assert _visible(stranger) == {"public"}
    assert _visible(None) == {"public"}


def test_add_link_and_document_references(authed_client, user_factory, fake_storage):
    owner = user_factory("owner")
    client = authed_client(owner)

    link = client.post(
        "/profiles/me/references",
        data={"type": "link", "title": "Portfolio", "url": "https://example.com/work"},
    )
    assert link.status_code == 201, link.text
    assert link.json()["url"] == "https://example.com/work"

    document = client.post(
        "/profiles/me/references",
        data={"type": "document", "title": "Certificate"},
        files={"file": ("cert.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert document.status_code == 201, document.text
    body = document.json()
    assert body["file_name"] == "cert.pdf"
    assert body["file_size"] == 8
    assert body["file_path"] == fake_storage["uploaded"][0]
    assert body["file_path"].startswith(f"{owner.id}/")

    listing = client.get(f"/profiles/{owner.id}/references").json()["items"]
    assert {item["type"] for item in listing} == {"link", "document"}


def test_reference_validation(authed_client, user_factory, fake_storage):
    client = authed_client(user_factory("owner"))
    assert client.post("/profiles/me/references", data={"type": "link", "title": "No url"}).status_code == 422
    assert client.post("/profiles/me/references", data={"type": "document", "title": "No file"}).status_code == 422
    bad_ext = client.post(
        "/profiles/me/references",
        data={"type": "document", "title": "Script"},
        files={"file": ("run.exe", b"MZ", "application/octet-stream")},
    )
    assert bad_ext.status_code == 400
    assert fake_storage["uploaded"] == []


def test_delete_document_reference_removes_blob(authed_client, user_factory, fake_storage):
    owner = user_factory("owner")
    client = authed_client(owner)
    document = client.post(
        "/profiles/me/references",
        data={"type": "document", "title": "Certificate"},
        files={"file": ("cert.pdf", b"%PDF-1.4", "application/pdf")},
    ).json()
    link = client.post(
        "/profiles/me/references",
        data={"type": "link", "title": "Portfolio", "url": "https://example.com"},
    ).json()

    assert client.delete(f"/profiles/me/references/{link['id']}").status_code == 204
    assert fake_storage["deleted"] == []

    assert client.delete(f"/profiles/me/references/{document['id']}").status_code == 204
    assert fake_storage["deleted"] == [document["file_path"]]

    with SessionLocal() as session:
        assert session.scalar(select(func.count(Reference.id))) == 0


def test_cannot_delete_someone_elses_reference(authed_client, user_factory, fake_storage):
    owner = user_factory("owner")
    intruder = user_factory("intruder")
    link = authed_client(owner).post(
        "/profiles/me/references",
        data={"type": "link", "title": "Portfolio", "url": "https://example.com"},
    ).json()

    assert authed_client(intruder).delete(f"/profiles/me/references/{link['id']}").status_code == 404
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Reference.id))) == 1


def test_reference_row_removed_even_if_storage_delete_fails(authed_client, user_factory, fake_storage, monkeypatch):
    owner = user_factory("owner")
    client = authed_client(owner)
    document = client.post(
        "/profiles/me/references",
        data={"type": "document", "title": "Certificate"},
        files={"file": ("cert.pdf", b"%PDF-1.4", "application/pdf")},
    ).json()

    def _failing_delete(key, *, client=None):
        raise StorageDeletionError("bucket unreachable")

    monkeypatch.setattr(storage_service, "delete_object", _failing_delete)
    assert client.delete(f"/profiles/me/references/{document['id']}").status_code == 204
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Reference.id))) == 0

from __future__ import annotations

import pytest

from matrimony_api.db import get_db
from matrimony_api.repositories.exceptions import DuplicateKeyRepositoryError
from matrimony_api.repositories.user import UserRepository

from helpers import auth, create_biodata, seed_user


@pytest.mark.asyncio
async def test_user_repository_crud(api_client) -> None:
    repo = UserRepository(get_db())

    created = await repo.create_user(
        email="Alice@Example.com",
        uid="uid-alice",
        name="Alice",
        photo_url=None,
        created_at=123456,
        updated_at=123456,
    )
    assert created.email == "alice@example.com"
    assert created.role == "user"
    assert created.is_premium is False

    fetched = await repo.get_by_email("ALICE@example.com")
    assert fetched is not None
    assert fetched.uid == "uid-alice"

    updated = await repo.update_user(email="alice@example.com", updates={"name": "Alice B", "updatedAt": 654321})
    assert updated.name == "Alice B"

    with pytest.raises(DuplicateKeyRepositoryError):
        await repo.create_user(
            email="alice@example.com",
            uid="uid-other",
            name=None,
            photo_url=None,
            created_at=1,
            updated_at=1,
        )

    assert await repo.exists("alice@example.com") is True
    assert await repo.exists("bob@example.com") is False


@pytest.mark.asyncio
async def test_create_own_user_then_conflict(api_client) -> None:
    response = await api_client.post(
        "/api/users",
        json={"name": "Carol", "photoURL": "https://img.test/carol.png"},
        headers=auth("Carol@Example.com"),
    )
    assert response.status_code == 201, response.text
    payload = response.json()
    assert payload["email"] == "carol@example.com"
    assert payload["uid"] == "uid-carol"
    assert payload["role"] == "user"
    assert payload["isPremium"] is False

    again = await api_client.post("/api/users", json={}, headers=auth("carol@example.com"))
    assert again.status_code == 409
    assert again.json()["error"] == "user already exists"


@pytest.mark.asyncio
async def test_missing_or_invalid_token_is_unauthenticated(api_client) -> None:
    missing = await api_client.post("/api/users", json={})
    assert missing.status_code == 401
    assert "error" in missing.json()

    invalid = await api_client.get("/api/users/carol@example.com", headers=auth("not-a-token"))
    assert invalid.status_code == 401


@pytest.mark.asyncio
async def test_only_admin_creates_users_for_others(api_client) -> None:
    forbidden = await api_client.post(
        "/api/users",
        json={"email": "dave@example.com"},
        headers=auth("carol@example.com"),
    )
    assert forbidden.status_code == 403

    await seed_user("admin@example.com", role="admin")
    created = await api_client.post(
        "/api/users",
        json={"email": "Dave@Example.com", "name": "Dave"},
        headers=auth("admin@example.com"),
    )
    assert created.status_code == 201, created.text
    assert created.json()["email"] == "dave@example.com"
    assert created.json()["uid"] is None


@pytest.mark.asyncio
async def test_list_and_get_users_access(api_client) -> None:
    await seed_user("admin@example.com", role="admin")
    await seed_user("bob@example.com")

    listed = await api_client.get("/api/users", headers=auth("bob@example.com"))
    assert listed.status_code == 403

    listed = await api_client.get("/api/users", headers=auth("admin@example.com"))
    assert listed.status_code == 200
    assert {u["email"] for u in listed.json()} == {"admin@example.com", "bob@example.com"}

    own = await api_client.get("/api/users/BOB@example.com", headers=auth("bob@example.com"))
    assert own.status_code == 200
    assert own.json()["email"] == "bob@example.com"

    other = await api_client.get("/api/users/admin@example.com", headers=auth("bob@example.com"))
    assert other.status_code == 403

    missing = await api_client.get("/api/users/nobody@example.com", headers=auth("admin@example.com"))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_admin_role_changes(api_client) -> None:
    await seed_user("admin@example.com", role="admin")
    await seed_user("bob@example.com")

    promoted = await api_client.patch(
        "/api/users/bob@example.com/role",
        json={"role": "admin"},
        headers=auth("admin@example.com"),
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"

    self_change = await api_client.patch(
        "/api/users/admin@example.com/role",
        json={"role": "user"},
        headers=auth("admin@example.com"),
    )
    assert self_change.status_code == 403
    stored = await UserRepository(get_db()).get_by_email("admin@example.com")
    assert stored is not None and stored.role == "admin"

    bad_role = await api_client.patch(
        "/api/users/bob@example.com/role",
        json={"role": "superuser"},
        headers=auth("admin@example.com"),
    )
    assert bad_role.status_code == 400


@pytest.mark.asyncio
async def test_non_admin_cannot_change_roles(api_client) -> None:
    await seed_user("bob@example.com")
    await seed_user("carol@example.com")

    response = await api_client.patch(
        "/api/users/bob@example.com/role",
        json={"role": "admin"},
        headers=auth("carol@example.com"),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_premium_grant_propagates_to_biodata(api_client) -> None:
    await seed_user("admin@example.com", role="admin")
    await seed_user("alice@example.com")
    biodata = await create_biodata(api_client, "alice@example.com")
    assert biodata["isPremium"] is False

    response = await api_client.patch(
        "/api/users/alice@example.com/premium",
        json={"isPremium": True},
        headers=auth("admin@example.com"),
    )
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["user"]["isPremium"] is True
    assert payload["biodataSynced"] is True

    fetched = await api_client.get(f"/api/biodatas/{biodata['_id']}")
    assert fetched.status_code == 200
    assert fetched.json()["isPremium"] is True

    status = await api_client.get("/api/users/alice@example.com/status", headers=auth("alice@example.com"))
    assert status.status_code == 200
    assert status.json() == {
        "email": "alice@example.com",
        "role": "user",
        "isAdmin": False,
        "isPremium": True,
    }


@pytest.mark.asyncio
async def test_premium_grant_without_biodata_and_for_unknown_user(api_client) -> None:
    await seed_user("admin@example.com", role="admin")
    await seed_user("bob@example.com")

    granted = await api_client.patch(
        "/api/users/bob@example.com/premium",
        json={"isPremium": True},
        headers=auth("admin@example.com"),
    )
    assert granted.status_code == 200
    assert granted.json()["biodataSynced"] is False

    missing = await api_client.patch(
        "/api/users/ghost@example.com/premium",
        json={"isPremium": True},
        headers=auth("admin@example.com"),
    )
    assert missing.status_code == 404

    not_admin = await api_client.patch(
        "/api/users/bob@example.com/premium",
        json={"isPremium": False},
        headers=auth("bob@example.com"),
    )
    assert not_admin.status_code == 403

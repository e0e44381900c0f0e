from __future__ import annotations

import asyncio

import pytest
from bson import ObjectId

from matrimony_api.db import get_db
from matrimony_api.db.collections import BIODATAS_COLLECTION, FAVOURITES_COLLECTION
from matrimony_api.repositories.favourite import FavouriteRepository

from helpers import auth, create_biodata, seed_user


@pytest.mark.asyncio
async def test_add_favourite_once(api_client) -> None:
    target = await create_biodata(api_client, "bob@example.com")

    created = await api_client.post(
        "/api/favourites",
        json={"biodata_id": target["_id"]},
        headers=auth("Carol@Example.com"),
    )
    assert created.status_code == 201, created.text
    assert created.json()["userEmail"] == "carol@example.com"
    assert created.json()["biodata_id"] == target["_id"]

    duplicate = await api_client.post(
        "/api/favourites",
        json={"biodataId": target["_id"]},
        headers=auth("carol@example.com"),
    )
    assert duplicate.status_code == 400
    assert await get_db()[FAVOURITES_COLLECTION].count_documents({}) == 1


@pytest.mark.asyncio
async def test_add_favourite_rejects_malformed_id(api_client) -> None:
    response = await api_client.post(
        "/api/favourites",
        json={"biodata_id": "not-an-id"},
        headers=auth("carol@example.com"),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_favourites_joins_biodata_and_tolerates_dangling(api_client) -> None:
    kept = await create_biodata(api_client, "bob@example.com")
    gone = await create_biodata(api_client, "erin@example.com")
    for biodata in (kept, gone):
        response = await api_client.post(
            "/api/favourites",
            json={"biodata_id": biodata["_id"]},
            headers=auth("carol@example.com"),
        )
        assert response.status_code == 201

    # removed behind the service's back, so the favourite now dangles
    await get_db()[BIODATAS_COLLECTION].delete_one({"_id": ObjectId(gone["_id"])})

    listed = await api_client.get("/api/favourites", headers=auth("carol@example.com"))
    assert listed.status_code == 200
    by_biodata = {item["biodata_id"]: item for item in listed.json()}
    assert by_biodata[kept["_id"]]["biodata"]["name"] == kept["name"]
    assert by_biodata[kept["_id"]]["biodata"]["mobileNumber"] is None
    assert by_biodata[gone["_id"]]["biodata"] is None


@pytest.mark.asyncio
async def test_list_favourites_of_others_needs_admin(api_client) -> None:
    await seed_user("admin@example.com", role="admin")
    target = await create_biodata(api_client, "bob@example.com")
    await api_client.post(
        "/api/favourites",
        json={"biodata_id": target["_id"]},
        headers=auth("carol@example.com"),
    )

    snooping = await api_client.get(
        "/api/favourites",
        params={"email": "carol@example.com"},
        headers=auth("bob@example.com"),
    )
    assert snooping.status_code == 403

    admin_view = await api_client.get(
        "/api/favourites",
        params={"email": "CAROL@example.com"},
        headers=auth("admin@example.com"),
    )
    assert admin_view.status_code == 200
    assert len(admin_view.json()) == 1


@pytest.mark.asyncio
async def test_remove_favourite_only_by_owner(api_client) -> None:
    target = await create_biodata(api_client, "bob@example.com")
    created = await api_client.post(
        "/api/favourites",
        json={"biodata_id": target["_id"]},
        headers=auth("carol@example.com"),
    )
    favourite_id = created.json()["_id"]

    stolen = await api_client.delete(f"/api/favourites/{favourite_id}", headers=auth("bob@example.com"))
    assert stolen.status_code == 404
    assert await get_db()[FAVOURITES_COLLECTION].count_documents({}) == 1

    removed = await api_client.delete(f"/api/favourites/{favourite_id}", headers=auth("carol@example.com"))
    assert removed.status_code == 200
    assert removed.json() == {"removed": True}

    missing = await api_client.delete(f"/api/favourites/{favourite_id}", headers=auth("carol@example.com"))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_concurrent_adds_store_one_favourite(api_client) -> None:
    target = await create_biodata(api_client, "bob@example.com")

    responses = await asyncio.gather(
        *(
            api_client.post(
                "/api/favourites",
                json={"biodata_id": target["_id"]},
                headers=auth("carol@example.com"),
            )
            for _ in range(4)
        )
    )
    assert sorted(r.status_code for r in responses) == [201, 400, 400, 400]
    assert await get_db()[FAVOURITES_COLLECTION].count_documents({}) == 1


@pytest.mark.asyncio
async def test_lost_add_race_is_reported_as_duplicate(api_client, monkeypatch) -> None:
    target = await create_biodata(api_client, "bob@example.com")
    await FavouriteRepository(get_db()).add_favourite(
        user_email="carol@example.com",
        biodata_id=target["_id"],
        added_at=1,
    )

    async def _no_existing(self, user_email, biodata_id):
        return None

    monkeypatch.setattr(FavouriteRepository, "find_pair", _no_existing)

    response = await api_client.post(
        "/api/favourites",
        json={"biodata_id": target["_id"]},
        headers=auth("carol@example.com"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "biodata already in favourites"
    assert await get_db()[FAVOURITES_COLLECTION].count_documents({}) == 1

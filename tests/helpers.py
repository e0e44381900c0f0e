"""Request and seeding helpers shared by the API tests."""

from __future__ import annotations

from typing import Optional

from httpx import AsyncClient

from matrimony_api.db import get_db
from matrimony_api.repositories.user import UserRepository

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def auth(email: str) -> dict:
    return {"Authorization": f"Bearer {email}"}


async def seed_user(email: str, *, role: str = "user", is_premium: bool = False) -> None:
    repo = UserRepository(get_db())
    await repo.create_user(
        email=email,
        uid=f"uid-{email.split('@', 1)[0]}",
        name=email.split("@", 1)[0].title(),
        photo_url=None,
        role=role,
        is_premium=is_premium,
        created_at=111,
        updated_at=111,
    )


async def create_biodata(
    api_client: AsyncClient,
    email: str,
    *,
    name: Optional[str] = None,
    extra: Optional[dict] = None,
) -> dict:
    data = {
        "biodataType": "Female",
        "name": name or email.split("@", 1)[0].title(),
        "age": "27",
        "height": "5.4",
        "occupation": "Engineer",
        "permanentDivision": "Dhaka",
        "presentDivision": "Chattogram",
        "contactEmail": email,
        "mobileNumber": "+8801700000000",
        **(extra or {}),
    }
    response = await api_client.post(
        "/api/biodatas",
        data=data,
        files={"profileImage": ("photo.png", PNG_BYTES, "image/png")},
        headers=auth(email),
    )
    assert response.status_code == 201, response.text
    return response.json()



"""Repository helpers for the ``users`` collection."""

from __future__ import annotations

import logging
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import USERS_COLLECTION
from ..models.identifiers import normalize_email
from ..models.user import UserDocument
from .exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class UserRepository:
    """Thin abstraction over the users MongoDB collection."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[USERS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_user(
        self,
        *,
        email: str,
        uid: Optional[str],
        name: Optional[str],
        photo_url: Optional[str],
        created_at: int,
        updated_at: int,
        role: str = "user",
        is_premium: bool = False,
    ) -> UserDocument:
        """Insert a new user document."""

        doc = {
            "_id": ObjectId(),
            "email": normalize_email(email),
            "uid": uid,
            "name": name,
            "photoURL": photo_url,
            "role": role,
            "isPremium": bool(is_premium),
            "createdAt": created_at,
            "updatedAt": updated_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            LOGGER.debug("Duplicate user insertion for email=%s", doc["email"])
            raise DuplicateKeyRepositoryError("user already exists") from exc
        return UserDocument(**doc)

    async def get_by_email(self, email: str) -> Optional[UserDocument]:
        doc = await self._collection.find_one({"email": normalize_email(email)})
        return UserDocument(**doc) if doc else None

    async def exists(self, email: str) -> bool:
        doc = await self._collection.find_one({"email": normalize_email(email)}, projection={"_id": 1})
        return doc is not None

    async def list_users(self) -> List[UserDocument]:
        users: List[UserDocument] = []
        async for doc in self._collection.find({}).sort("createdAt", -1):
            users.append(UserDocument(**doc))
        return users

    async def premium_emails(self) -> List[str]:
        cursor = self._collection.find({"isPremium": True}, projection={"email": 1})
        return [doc["email"] async for doc in cursor if doc.get("email")]

    async def update_user(self, *, email: str, updates: dict) -> UserDocument:
        """Update the user identified by email."""

        result = await self._collection.find_one_and_update(
            {"email": normalize_email(email)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundRepositoryError("user not found")
        return UserDocument(**result)

    async def upsert_premium(self, *, email: str, is_premium: bool, updated_at: int) -> None:
        """Write the premium flag, creating a minimal user record when none exists."""

        email = normalize_email(email)
        await self._collection.update_one(
            {"email": email},
            {
                "$set": {"isPremium": bool(is_premium), "updatedAt": updated_at},
                "$setOnInsert": {
                    "role": "user",
                    "createdAt": updated_at,
                },
            },
            upsert=True,
        )


__all__ = ["UserRepository"]

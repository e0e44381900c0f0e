"""Repository helpers for the ``favourites`` collection."""

from __future__ import annotations

from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from ..db.collections import FAVOURITES_COLLECTION
from ..models.favourite import FavouriteDocument
from ..models.identifiers import normalize_email
from .exceptions import DuplicateKeyRepositoryError


class FavouriteRepository:
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[FAVOURITES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def find_pair(self, user_email: str, biodata_id: str) -> Optional[FavouriteDocument]:
        doc = await self._collection.find_one({"userEmail": normalize_email(user_email), "biodata_id": biodata_id})
        return FavouriteDocument(**doc) if doc else None

    async def add_favourite(self, *, user_email: str, biodata_id: str, added_at: int) -> FavouriteDocument:
        doc = {
            "_id": ObjectId(),
            "userEmail": normalize_email(user_email),
            "biodata_id": biodata_id,
            "addedAt": added_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateKeyRepositoryError("favourite already exists") from exc
        return FavouriteDocument(**doc)

    async def list_for_user(self, user_email: str) -> List[FavouriteDocument]:
        cursor = self._collection.find({"userEmail": normalize_email(user_email)}).sort("addedAt", -1)
        return [FavouriteDocument(**doc) async for doc in cursor]

    async def delete_owned(self, favourite_id: ObjectId, user_email: str) -> bool:
        result = await self._collection.delete_one({"_id": favourite_id, "userEmail": normalize_email(user_email)})
        return bool(result.deleted_count)

    async def delete_for_biodata(self, biodata_id: str) -> int:
        result = await self._collection.delete_many({"biodata_id": biodata_id})
        return int(result.deleted_count)


__all__ = ["FavouriteRepository"]

"""Repository helpers for biodata persistence (the ``members`` collection)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from ..db.collections import BIODATAS_COLLECTION
from ..models.biodata import BiodataDocument
from ..models.identifiers import normalize_email
from .exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class BiodataRepository:
    """MongoDB access layer for biodata documents."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[BIODATAS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_biodata(self, fields: Dict[str, Any], *, email: str, created_at: int) -> BiodataDocument:
        doc = {
            **fields,
            "_id": ObjectId(),
            "email": normalize_email(email),
            "createdAt": created_at,
            "updatedAt": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            LOGGER.debug("Duplicate biodata insertion for email=%s", doc["email"])
            raise DuplicateKeyRepositoryError("biodata already exists") from exc
        return BiodataDocument(**doc)

    async def get_by_id(self, biodata_id: ObjectId) -> Optional[BiodataDocument]:
        doc = await self._collection.find_one({"_id": biodata_id})
        return BiodataDocument(**doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[BiodataDocument]:
        doc = await self._collection.find_one({"email": normalize_email(email)})
        return BiodataDocument(**doc) if doc else None

    async def exists_for_email(self, email: str) -> bool:
        doc = await self._collection.find_one({"email": normalize_email(email)}, projection={"_id": 1})
        return doc is not None

    async def search(
        self,
        query: Dict[str, Any],
        *,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[BiodataDocument], int]:
        """Return one page of matching biodatas, premium first then newest, plus the total."""

        total = await self._collection.count_documents(query)
        cursor = (
            self._collection.find(query)
            .sort([("isPremium", DESCENDING), ("createdAt", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        items = [BiodataDocument(**doc) async for doc in cursor]
        return items, total

    async def replace_biodata(self, biodata_id: ObjectId, document: Dict[str, Any]) -> BiodataDocument:
        """Store ``document`` as the full new state of the biodata."""

        body = {key: value for key, value in document.items() if key != "_id"}
        result = await self._collection.replace_one({"_id": biodata_id}, body)
        if not result.matched_count:
            raise NotFoundRepositoryError("biodata not found")
        return BiodataDocument(**{**body, "_id": biodata_id})

    async def set_premium_for_email(self, email: str, *, is_premium: bool, updated_at: int) -> bool:
        result = await self._collection.update_one(
            {"email": normalize_email(email)},
            {"$set": {"isPremium": bool(is_premium), "updatedAt": updated_at}},
        )
        return bool(result.matched_count)

    async def delete_biodata(self, biodata_id: ObjectId) -> bool:
        result = await self._collection.delete_one({"_id": biodata_id})
        return bool(result.deleted_count)


__all__ = ["BiodataRepository"]

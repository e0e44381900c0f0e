"""Repository helpers for the ``contactRequests`` collection."""

from __future__ import annotations

import logging
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import CONTACT_REQUESTS_COLLECTION
from ..models.contact_request import ContactRequestDocument
from ..models.identifiers import normalize_email
from .exceptions import DuplicateKeyRepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class ContactRequestRepository:
    """MongoDB access layer for contact requests."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[CONTACT_REQUESTS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def find_for_pair(self, requester_email: str, biodata_id: str) -> Optional[ContactRequestDocument]:
        doc = await self._collection.find_one(
            {"requesterEmail": normalize_email(requester_email), "requestedBiodataId": biodata_id}
        )
        return ContactRequestDocument(**doc) if doc else None

    async def create_request(
        self,
        *,
        requester_email: str,
        biodata_id: str,
        created_at: int,
    ) -> ContactRequestDocument:
        doc = {
            "_id": ObjectId(),
            "requesterEmail": normalize_email(requester_email),
            "requestedBiodataId": biodata_id,
            "status": "pending",
            "createdAt": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            LOGGER.debug("Duplicate contact request %s -> %s", doc["requesterEmail"], biodata_id)
            raise DuplicateKeyRepositoryError("contact request already exists") from exc
        return ContactRequestDocument(**doc)

    async def get_by_id(self, request_id: ObjectId) -> Optional[ContactRequestDocument]:
        doc = await self._collection.find_one({"_id": request_id})
        return ContactRequestDocument(**doc) if doc else None

    async def transition_pending(
        self,
        request_id: ObjectId,
        *,
        status: str,
        timestamp_field: str,
        at: int,
    ) -> Optional[ContactRequestDocument]:
        """Move a pending request to ``status``; returns None when it is no longer pending."""

        doc = await self._collection.find_one_and_update(
            {"_id": request_id, "status": "pending"},
            {"$set": {"status": status, timestamp_field: at}},
            return_document=ReturnDocument.AFTER,
        )
        return ContactRequestDocument(**doc) if doc else None

    async def list_requests(self, status: Optional[str] = None) -> List[ContactRequestDocument]:
        query = {"status": status} if status else {}
        cursor = self._collection.find(query).sort("createdAt", -1)
        return [ContactRequestDocument(**doc) async for doc in cursor]

    async def list_for_requester(self, requester_email: str) -> List[ContactRequestDocument]:
        cursor = self._collection.find({"requesterEmail": normalize_email(requester_email)}).sort("createdAt", -1)
        return [ContactRequestDocument(**doc) async for doc in cursor]


__all__ = ["ContactRequestRepository"]

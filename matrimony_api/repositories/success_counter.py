from __future__ import annotations

from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..db.collections import SUCCESS_COUNTERS_COLLECTION


class SuccessCounterRepository:
    """Read-only access to the success counter records."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection = database[SUCCESS_COUNTERS_COLLECTION]

    async def list_all(self) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        async for doc in self._collection.find({}):
            if "_id" in doc:
                doc["_id"] = str(doc["_id"])
            records.append(doc)
        return records


__all__ = ["SuccessCounterRepository"]

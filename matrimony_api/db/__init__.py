import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from ..config import get_settings
from .collections import (
    BIODATAS_COLLECTION,
    CONTACT_REQUESTS_COLLECTION,
    FAVOURITES_COLLECTION,
    USERS_COLLECTION,
)

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the unique constraints backing the one-per-owner and one-per-pair rules."""

    logger = logging.getLogger("uvicorn.error")
    try:
        await db[USERS_COLLECTION].create_index("email", unique=True, name="users_email_unique")
        await db[USERS_COLLECTION].create_index("createdAt")

        await db[BIODATAS_COLLECTION].create_index("email", unique=True, name="members_email_unique")
        await db[BIODATAS_COLLECTION].create_index(
            [("isPremium", DESCENDING), ("createdAt", DESCENDING)],
            name="members_premium_recent_idx",
        )

        await db[FAVOURITES_COLLECTION].create_index(
            [("userEmail", ASCENDING), ("biodata_id", ASCENDING)],
            name="favourites_user_biodata_unique",
            unique=True,
        )

        await db[CONTACT_REQUESTS_COLLECTION].create_index(
            [("requesterEmail", ASCENDING), ("requestedBiodataId", ASCENDING)],
            name="contact_requests_requester_biodata_unique",
            unique=True,
        )
        await db[CONTACT_REQUESTS_COLLECTION].create_index(
            [("status", ASCENDING), ("createdAt", DESCENDING)],
            name="contact_requests_status_idx",
        )
    except Exception as exc:  # pragma: no cover - best-effort logging
        logger.error("Failed to ensure indexes: %s", exc)


async def connect_to_mongo() -> None:
    """Open the process-wide MongoDB client used by every request handler."""

    global _client, _db

    settings = get_settings()
    if not settings.mongo_uri and not settings.mongo_alt_uri:
        raise RuntimeError("Missing MONGO_URI env var for matrimony API")

    logger = logging.getLogger("uvicorn.error")

    async def _try_connect(uri: str) -> tuple[AsyncIOMotorClient, AsyncIOMotorDatabase]:
        client = AsyncIOMotorClient(
            uri,
            maxPoolSize=20,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
            connectTimeoutMS=settings.mongo_connect_timeout_ms,
            socketTimeoutMS=settings.mongo_socket_timeout_ms,
            **({"directConnection": True} if settings.mongo_direct else {}),
        )
        db = client[settings.mongo_db]
        await client.admin.command("ping")
        await ensure_indexes(db)
        return client, db

    primary_error: Optional[Exception] = None

    try:
        _client, _db = await _try_connect(settings.mongo_uri)
        logger.info("MongoDB connected: db=%s", settings.mongo_db)
        return
    except Exception as exc:  # pragma: no cover - connection issues surface at startup
        primary_error = exc
        logger.error("Mongo primary URI failed: %s", exc)

    # Fallback: alternate direct URI when SRV DNS fails
    if settings.mongo_alt_uri:
        try:
            _client, _db = await _try_connect(settings.mongo_alt_uri)
            logger.info("MongoDB connected via ALT URI: db=%s", settings.mongo_db)
            return
        except Exception as exc:  # pragma: no cover - same as above
            logger.error("Mongo ALT URI failed: %s", exc)

    raise primary_error or RuntimeError("Mongo connection failed")


async def close_mongo_connection() -> None:
    """Close the MongoDB client if it is initialised."""

    global _client, _db
    if _client:
        try:
            _client.close()
        finally:
            logging.getLogger("uvicorn.error").info("MongoDB connection closed")
        _client = None
        _db = None


def is_connected() -> bool:
    return _client is not None and _db is not None


def get_db() -> AsyncIOMotorDatabase:
    if _db is None:
        raise RuntimeError("MongoDB not connected. Did you call connect_to_mongo()?")
    return _db


__all__ = [
    "connect_to_mongo",
    "close_mongo_connection",
    "ensure_indexes",
    "get_db",
    "is_connected",
]

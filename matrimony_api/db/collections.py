"""MongoDB collection names used by the matrimony API."""

from __future__ import annotations

USERS_COLLECTION = "users"
BIODATAS_COLLECTION = "members"
FAVOURITES_COLLECTION = "favourites"
CONTACT_REQUESTS_COLLECTION = "contactRequests"
SUCCESS_COUNTERS_COLLECTION = "success_counters"

__all__ = [
    "USERS_COLLECTION",
    "BIODATAS_COLLECTION",
    "FAVOURITES_COLLECTION",
    "CONTACT_REQUESTS_COLLECTION",
    "SUCCESS_COUNTERS_COLLECTION",
]

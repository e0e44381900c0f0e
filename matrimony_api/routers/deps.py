from typing import Optional

from fastapi import Header

from ..errors import Unauthenticated
from ..integrations import identity
from ..integrations.identity import VerifiedIdentity


def _extract_token(authorization: str) -> str:
    if not authorization.lower().startswith("bearer "):
        raise Unauthenticated("missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise Unauthenticated("missing bearer token")
    return token


async def require_identity(authorization: str = Header(default="")) -> VerifiedIdentity:
    if not authorization:
        raise Unauthenticated("authorization required")
    return await identity.verify_token(_extract_token(authorization))


async def optional_identity(authorization: str = Header(default="")) -> Optional[VerifiedIdentity]:
    """Identity for public endpoints that show more to owners and admins."""

    if not authorization:
        return None
    return await identity.verify_token(_extract_token(authorization))


__all__ = ["optional_identity", "require_identity"]

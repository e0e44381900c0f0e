from __future__ import annotations

import logging
import time
from typing import List, Tuple

from ..db import get_db
from ..errors import Conflict, Forbidden, NotFound
from ..integrations.identity import VerifiedIdentity
from ..models.identifiers import normalize_email
from ..models.user import UserCreateRequest, UserDocument, UserStatus
from ..repositories.biodata import BiodataRepository
from ..repositories.exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError
from ..repositories.user import UserRepository
from .access import AccessPolicy, is_self

LOGGER = logging.getLogger("uvicorn.error")


class UserService:
    """User records, role management and admin premium grants."""

    def __init__(
        self,
        user_repo: UserRepository,
        biodata_repo: BiodataRepository,
        access: AccessPolicy,
    ) -> None:
        self._user_repo = user_repo
        self._biodata_repo = biodata_repo
        self._access = access

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def create_user(self, identity: VerifiedIdentity, payload: UserCreateRequest) -> UserDocument:
        email = normalize_email(payload.email) if payload.email else identity.email
        creating_self = is_self(identity.email, email)
        if not creating_self:
            await self._access.require_admin(identity)

        if await self._user_repo.exists(email):
            raise Conflict("user already exists")

        now_ms = self._now_ms()
        try:
            return await self._user_repo.create_user(
                email=email,
                uid=identity.uid if creating_self else None,
                name=(payload.name or "").strip() or None,
                photo_url=(payload.photo_url or "").strip() or None,
                created_at=now_ms,
                updated_at=now_ms,
            )
        except DuplicateKeyRepositoryError:
            raise Conflict("user already exists") from None

    async def list_users(self, identity: VerifiedIdentity) -> List[UserDocument]:
        await self._access.require_admin(identity)
        return await self._user_repo.list_users()

    async def get_user(self, identity: VerifiedIdentity, email: str) -> UserDocument:
        await self._access.require_self_or_admin(identity, email)
        user = await self._user_repo.get_by_email(email)
        if not user:
            raise NotFound("user not found")
        return user

    async def get_status(self, identity: VerifiedIdentity, email: str) -> UserStatus:
        user = await self.get_user(identity, email)
        return UserStatus(
            email=user.email,
            role=user.role,
            isAdmin=user.is_admin,
            isPremium=await self._access.effective_premium(user.email),
        )

    async def set_role(self, identity: VerifiedIdentity, email: str, role: str) -> UserDocument:
        await self._access.require_admin(identity)
        if is_self(identity.email, email):
            raise Forbidden("admins cannot change their own role")
        try:
            return await self._user_repo.update_user(
                email=email,
                updates={"role": role, "updatedAt": self._now_ms()},
            )
        except NotFoundRepositoryError:
            raise NotFound("user not found") from None

    async def set_premium(
        self,
        identity: VerifiedIdentity,
        email: str,
        is_premium: bool,
    ) -> Tuple[UserDocument, bool]:
        """Grant or revoke premium, then copy the flag onto the user's biodata.

        The two writes are not atomic. If the second one fails the biodata keeps
        its old flag until the next biodata update re-syncs it.
        """
        await self._access.require_admin(identity)
        now_ms = self._now_ms()
        try:
            user = await self._user_repo.update_user(
                email=email,
                updates={"isPremium": bool(is_premium), "updatedAt": now_ms},
            )
        except NotFoundRepositoryError:
            raise NotFound("user not found") from None

        synced = await self._biodata_repo.set_premium_for_email(
            user.email,
            is_premium=bool(is_premium),
            updated_at=now_ms,
        )
        LOGGER.info("Premium set to %s for %s (biodata synced=%s)", bool(is_premium), user.email, synced)
        return user, synced


def get_user_service() -> UserService:
    db = get_db()
    user_repo = UserRepository(db)
    biodata_repo = BiodataRepository(db)
    return UserService(user_repo, biodata_repo, AccessPolicy(user_repo, biodata_repo))


__all__ = ["UserService", "get_user_service"]

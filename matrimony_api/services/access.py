"""Access decisions: self-access, admin override and the premium gate.

Rules are evaluated in this order:

1. the caller owns the resource (emails compared in normalized form);
2. the caller's stored role is ``admin``;
3. premium-gated capabilities require the caller's *effective* premium flag.

Anything else is forbidden. None of the checks write to the store.
"""

from __future__ import annotations

from typing import Optional

from ..errors import Forbidden
from ..integrations.identity import VerifiedIdentity
from ..models.biodata import BiodataDocument
from ..models.identifiers import normalize_email
from ..models.user import UserDocument
from ..repositories.biodata import BiodataRepository
from ..repositories.user import UserRepository


def resolve_effective_premium(
    biodata: Optional[BiodataDocument],
    user: Optional[UserDocument],
) -> bool:
    """Prefer the biodata copy of ``isPremium``, fall back to the user record, else False.

    The two copies may briefly diverge after a premium grant since they are
    written separately.
    """
    if biodata is not None and biodata.is_premium is not None:
        return bool(biodata.is_premium)
    if user is not None:
        return bool(user.is_premium)
    return False


def is_self(caller_email: str, owner_email: str) -> bool:
    caller = normalize_email(caller_email)
    return bool(caller) and caller == normalize_email(owner_email)


class AccessPolicy:
    def __init__(self, user_repo: UserRepository, biodata_repo: BiodataRepository) -> None:
        self._user_repo = user_repo
        self._biodata_repo = biodata_repo

    async def caller_record(self, identity: VerifiedIdentity) -> Optional[UserDocument]:
        return await self._user_repo.get_by_email(identity.email)

    async def is_admin(self, identity: Optional[VerifiedIdentity]) -> bool:
        if identity is None:
            return False
        user = await self.caller_record(identity)
        return bool(user and user.is_admin)

    async def require_admin(self, identity: VerifiedIdentity) -> UserDocument:
        user = await self.caller_record(identity)
        if not user or not user.is_admin:
            raise Forbidden("admin access required")
        return user

    async def can_access_owned(self, identity: Optional[VerifiedIdentity], owner_email: str) -> bool:
        if identity is None:
            return False
        if is_self(identity.email, owner_email):
            return True
        return await self.is_admin(identity)

    async def require_self_or_admin(self, identity: VerifiedIdentity, owner_email: str) -> None:
        if not await self.can_access_owned(identity, owner_email):
            raise Forbidden("you may only access your own records")

    async def effective_premium(self, email: str) -> bool:
        biodata = await self._biodata_repo.get_by_email(email)
        if biodata is not None and biodata.is_premium is not None:
            return bool(biodata.is_premium)
        user = await self._user_repo.get_by_email(email)
        return resolve_effective_premium(biodata, user)

    async def require_premium(self, identity: VerifiedIdentity, *, action: str) -> None:
        if not await self.effective_premium(identity.email):
            raise Forbidden(f"premium membership required to {action}")


__all__ = ["AccessPolicy", "is_self", "resolve_effective_premium"]

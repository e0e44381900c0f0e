from __future__ import annotations

import asyncio
import time
from typing import List, Optional

from ..db import get_db
from ..errors import DuplicateFavourite, InvalidInput, NotFound
from ..integrations.identity import VerifiedIdentity
from ..models.favourite import Favourite, FavouriteDocument, FavouriteWithBiodata
from ..models.identifiers import normalize_email, object_id_or_none
from ..repositories.biodata import BiodataRepository
from ..repositories.exceptions import DuplicateKeyRepositoryError
from ..repositories.favourite import FavouriteRepository
from ..repositories.user import UserRepository
from .access import AccessPolicy
from .biodata_service import BiodataService, parse_biodata_id


class FavouriteService:
    """Per-user shortlist of biodatas, one entry per (user, biodata)."""

    def __init__(
        self,
        favourite_repo: FavouriteRepository,
        biodata_repo: BiodataRepository,
        biodata_service: BiodataService,
        access: AccessPolicy,
    ) -> None:
        self._favourite_repo = favourite_repo
        self._biodata_repo = biodata_repo
        self._biodata_service = biodata_service
        self._access = access

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def add_favourite(self, identity: VerifiedIdentity, biodata_id: str) -> Favourite:
        canonical_id = str(parse_biodata_id(biodata_id))
        if await self._favourite_repo.find_pair(identity.email, canonical_id):
            raise DuplicateFavourite()
        try:
            doc = await self._favourite_repo.add_favourite(
                user_email=identity.email,
                biodata_id=canonical_id,
                added_at=self._now_ms(),
            )
        except DuplicateKeyRepositoryError:
            raise DuplicateFavourite() from None
        return Favourite(**doc.model_dump(by_alias=True))

    async def _with_biodata(self, doc: FavouriteDocument, viewer: VerifiedIdentity) -> FavouriteWithBiodata:
        biodata = None
        oid = object_id_or_none(doc.biodata_id)
        biodata_doc = await self._biodata_repo.get_by_id(oid) if oid else None
        if biodata_doc:
            biodata = await self._biodata_service.present(
                biodata_doc,
                reveal_contact=await self._access.can_access_owned(viewer, biodata_doc.email),
            )
        return FavouriteWithBiodata(**doc.model_dump(by_alias=True), biodata=biodata)

    async def list_favourites(
        self,
        identity: VerifiedIdentity,
        email: Optional[str] = None,
    ) -> List[FavouriteWithBiodata]:
        owner = normalize_email(email) if email else identity.email
        if not owner:
            raise InvalidInput("email required")
        await self._access.require_self_or_admin(identity, owner)
        docs = await self._favourite_repo.list_for_user(owner)
        return list(await asyncio.gather(*(self._with_biodata(doc, identity) for doc in docs)))

    async def remove_favourite(self, identity: VerifiedIdentity, favourite_id: str) -> None:
        oid = object_id_or_none(favourite_id)
        if oid is None:
            raise InvalidInput("invalid favourite id", details=favourite_id)
        # Missing and not-yours look the same to the caller
        if not await self._favourite_repo.delete_owned(oid, identity.email):
            raise NotFound("favourite not found")


def get_favourite_service() -> FavouriteService:
    db = get_db()
    biodata_repo = BiodataRepository(db)
    user_repo = UserRepository(db)
    favourite_repo = FavouriteRepository(db)
    access = AccessPolicy(user_repo, biodata_repo)
    return FavouriteService(
        favourite_repo,
        biodata_repo,
        BiodataService(biodata_repo, user_repo, favourite_repo, access),
        access,
    )


__all__ = ["FavouriteService", "get_favourite_service"]

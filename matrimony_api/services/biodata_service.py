from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pydantic import BaseModel

from ..db import get_db
from ..errors import Forbidden, InvalidInput, NotFound, UpstreamFailure
from ..integrations import cloudinary as image_store
from ..integrations.identity import VerifiedIdentity
from ..models.biodata import CONTACT_FIELDS, Biodata, BiodataCreateRequest, BiodataDocument, BiodataUpsert
from ..models.identifiers import object_id_or_none
from ..repositories.biodata import BiodataRepository
from ..repositories.exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError
from ..repositories.favourite import FavouriteRepository
from ..repositories.user import UserRepository
from .access import AccessPolicy, is_self, resolve_effective_premium

LOGGER = logging.getLogger("uvicorn.error")

MAX_PAGE_SIZE = 100


class ProfileImage(BaseModel):
    """An uploaded image buffer on its way to the image store."""

    data: bytes
    content_type: Optional[str] = None
    filename: Optional[str] = None


class BiodataFilters(BaseModel):
    biodata_type: Optional[str] = None
    division: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    premium: Optional[bool] = None
    skip: int = 0
    limit: int = 20


def parse_biodata_id(raw: str) -> ObjectId:
    oid = object_id_or_none(raw)
    if oid is None:
        raise InvalidInput("invalid biodata id", details=raw)
    return oid


def _exact_ci(value: str) -> Dict[str, Any]:
    return {"$regex": f"^{re.escape(value.strip())}$", "$options": "i"}


def _premium_clause(premium: bool, premium_emails: List[str]) -> Dict[str, Any]:
    # Same rule as resolve_effective_premium: a stored flag wins, else the owner's user record
    if premium:
        return {
            "$or": [
                {"isPremium": True},
                {"isPremium": None, "email": {"$in": premium_emails}},
            ]
        }
    return {
        "$or": [
            {"isPremium": False},
            {"isPremium": None, "email": {"$nin": premium_emails}},
        ]
    }


def build_search_query(filters: BiodataFilters, premium_emails: Optional[List[str]] = None) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    clauses: List[Dict[str, Any]] = []
    if filters.biodata_type:
        query["biodataType"] = _exact_ci(filters.biodata_type)
    if filters.division:
        clauses.append(
            {
                "$or": [
                    {"permanentDivision": _exact_ci(filters.division)},
                    {"presentDivision": _exact_ci(filters.division)},
                ]
            }
        )
    age: Dict[str, int] = {}
    if filters.min_age is not None:
        age["$gte"] = filters.min_age
    if filters.max_age is not None:
        age["$lte"] = filters.max_age
    if age:
        query["age"] = age
    if filters.premium is not None:
        clauses.append(_premium_clause(filters.premium, premium_emails or []))
    if len(clauses) == 1:
        query.update(clauses[0])
    elif clauses:
        query["$and"] = clauses
    return query


class BiodataService:
    """Biodata CRUD, public views and the premium stamp on every write."""

    def __init__(
        self,
        biodata_repo: BiodataRepository,
        user_repo: UserRepository,
        favourite_repo: FavouriteRepository,
        access: AccessPolicy,
    ) -> None:
        self._biodata_repo = biodata_repo
        self._user_repo = user_repo
        self._favourite_repo = favourite_repo
        self._access = access

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def effective_premium_of(self, doc: BiodataDocument) -> bool:
        if doc.is_premium is not None:
            return bool(doc.is_premium)
        user = await self._user_repo.get_by_email(doc.email)
        return resolve_effective_premium(doc, user)

    async def present(self, doc: BiodataDocument, *, reveal_contact: bool) -> Biodata:
        data = doc.model_dump(by_alias=True)
        data["isPremium"] = await self.effective_premium_of(doc)
        if not reveal_contact:
            for field in CONTACT_FIELDS:
                data[field] = None
        return Biodata(**data)

    async def present_many(
        self,
        docs: List[BiodataDocument],
        *,
        viewer: Optional[VerifiedIdentity] = None,
        viewer_is_admin: bool = False,
    ) -> List[Biodata]:
        # gather keeps input order regardless of which lookup finishes first
        return list(
            await asyncio.gather(
                *(
                    self.present(
                        doc,
                        reveal_contact=viewer_is_admin
                        or (viewer is not None and is_self(viewer.email, doc.email)),
                    )
                    for doc in docs
                )
            )
        )

    async def _upload_image(self, image: ProfileImage) -> str:
        return await image_store.upload_profile_image(image.data, image.content_type, image.filename)

    async def create_biodata(
        self,
        identity: VerifiedIdentity,
        payload: BiodataCreateRequest,
        image: Optional[ProfileImage],
    ) -> Biodata:
        if image is None or not image.data:
            raise InvalidInput("profileImage is required")
        if payload.is_premium is not None and not await self._access.is_admin(identity):
            raise Forbidden("only admins may set premium status")
        if await self._biodata_repo.exists_for_email(identity.email):
            raise InvalidInput("biodata already exists for this user")

        # Upload failures abort creation
        profile_image = await self._upload_image(image)

        if payload.is_premium is not None:
            is_premium = bool(payload.is_premium)
        else:
            user = await self._user_repo.get_by_email(identity.email)
            is_premium = bool(user.is_premium) if user else False

        fields = payload.model_dump(by_alias=True, exclude={"is_premium"})
        fields["profileImage"] = profile_image
        fields["isPremium"] = is_premium
        try:
            doc = await self._biodata_repo.create_biodata(fields, email=identity.email, created_at=self._now_ms())
        except DuplicateKeyRepositoryError:
            raise InvalidInput("biodata already exists for this user") from None
        return await self.present(doc, reveal_contact=True)

    async def list_biodatas(
        self,
        filters: BiodataFilters,
        viewer: Optional[VerifiedIdentity] = None,
    ) -> Tuple[List[Biodata], int]:
        if filters.min_age is not None and filters.max_age is not None and filters.min_age > filters.max_age:
            raise InvalidInput("minAge must not exceed maxAge")
        limit = max(1, min(filters.limit, MAX_PAGE_SIZE))
        premium_emails = await self._user_repo.premium_emails() if filters.premium is not None else None
        docs, total = await self._biodata_repo.search(
            build_search_query(filters, premium_emails),
            skip=max(0, filters.skip),
            limit=limit,
        )
        viewer_is_admin = await self._access.is_admin(viewer)
        items = await self.present_many(docs, viewer=viewer, viewer_is_admin=viewer_is_admin)
        return items, total

    async def get_document(self, biodata_id: str) -> BiodataDocument:
        doc = await self._biodata_repo.get_by_id(parse_biodata_id(biodata_id))
        if not doc:
            raise NotFound("biodata not found")
        return doc

    async def get_biodata(self, biodata_id: str, viewer: Optional[VerifiedIdentity] = None) -> Biodata:
        doc = await self.get_document(biodata_id)
        reveal = await self._access.can_access_owned(viewer, doc.email)
        return await self.present(doc, reveal_contact=reveal)

    async def get_by_email(self, identity: VerifiedIdentity, email: str) -> Biodata:
        await self._access.require_self_or_admin(identity, email)
        doc = await self._biodata_repo.get_by_email(email)
        if not doc:
            raise NotFound("biodata not found")
        return await self.present(doc, reveal_contact=True)

    async def update_biodata(
        self,
        biodata_id: str,
        identity: VerifiedIdentity,
        payload: BiodataUpsert,
        image: Optional[ProfileImage] = None,
    ) -> Biodata:
        existing = await self.get_document(biodata_id)
        caller_is_admin = await self._access.is_admin(identity)
        if not caller_is_admin and not is_self(identity.email, existing.email):
            raise Forbidden("only the owner or an admin may update this biodata")
        if payload.is_premium is not None and not caller_is_admin:
            raise Forbidden("only admins may set premium status")

        updates = payload.model_dump(by_alias=True, exclude_unset=True, exclude={"is_premium"})

        profile_image = existing.profile_image
        if image is not None and image.data:
            # InvalidInput for a bad image still propagates; only store failures degrade
            try:
                profile_image = await self._upload_image(image)
            except UpstreamFailure as exc:
                LOGGER.warning(
                    "Profile image upload failed for biodata %s, keeping existing image: %s",
                    existing.id,
                    exc.details or exc.message,
                )

        if payload.is_premium is not None:
            is_premium = bool(payload.is_premium)
        else:
            owner = await self._user_repo.get_by_email(existing.email)
            is_premium = bool(owner.is_premium) if owner else False

        document = existing.model_dump(by_alias=True)
        document.update(updates)
        document.update(
            {
                "email": existing.email,
                "profileImage": profile_image,
                "isPremium": is_premium,
                "createdAt": existing.created_at,
                "updatedAt": self._now_ms(),
            }
        )
        try:
            stored = await self._biodata_repo.replace_biodata(existing.id, document)
        except NotFoundRepositoryError:
            raise NotFound("biodata not found") from None

        await self._user_repo.upsert_premium(
            email=existing.email,
            is_premium=is_premium,
            updated_at=document["updatedAt"],
        )
        return await self.present(stored, reveal_contact=True)

    async def delete_biodata(self, biodata_id: str, identity: VerifiedIdentity) -> None:
        await self._access.require_admin(identity)
        oid = parse_biodata_id(biodata_id)
        if not await self._biodata_repo.delete_biodata(oid):
            raise NotFound("biodata not found")
        removed = await self._favourite_repo.delete_for_biodata(str(oid))
        LOGGER.info("Deleted biodata %s and %s favourite(s) referencing it", oid, removed)


def get_biodata_service() -> BiodataService:
    db = get_db()
    biodata_repo = BiodataRepository(db)
    user_repo = UserRepository(db)
    return BiodataService(
        biodata_repo,
        user_repo,
        FavouriteRepository(db),
        AccessPolicy(user_repo, biodata_repo),
    )


__all__ = [
    "BiodataFilters",
    "BiodataService",
    "ProfileImage",
    "build_search_query",
    "get_biodata_service",
    "parse_biodata_id",
]

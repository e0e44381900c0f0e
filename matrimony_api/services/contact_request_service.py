"""Contact-request lifecycle.

A request starts ``pending`` and moves once to ``approved`` or ``rejected``;
both are terminal. Approval is what unlocks the requested biodata's contact
details in the requester's own listing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

from bson import ObjectId

from ..db import get_db
from ..errors import Conflict, InvalidInput, NotFound
from ..integrations.identity import VerifiedIdentity
from ..models.contact_request import (
    CONTACT_REQUEST_STATUSES,
    AdminContactRequest,
    ContactRequest,
    ContactRequestDocument,
    MyContactRequest,
)
from ..models.biodata import BiodataDocument
from ..models.identifiers import object_id_or_none
from ..models.user import User
from ..repositories.biodata import BiodataRepository
from ..repositories.contact_request import ContactRequestRepository
from ..repositories.exceptions import DuplicateKeyRepositoryError
from ..repositories.favourite import FavouriteRepository
from ..repositories.user import UserRepository
from .access import AccessPolicy, is_self
from .biodata_service import BiodataService, parse_biodata_id

LOGGER = logging.getLogger("uvicorn.error")

_TIMESTAMP_FIELDS = {"approved": "approvedAt", "rejected": "rejectedAt"}


def _parse_request_id(raw: str) -> ObjectId:
    oid = object_id_or_none(raw)
    if oid is None:
        raise InvalidInput("invalid contact request id", details=raw)
    return oid


class ContactRequestService:
    def __init__(
        self,
        request_repo: ContactRequestRepository,
        biodata_repo: BiodataRepository,
        user_repo: UserRepository,
        biodata_service: BiodataService,
        access: AccessPolicy,
    ) -> None:
        self._request_repo = request_repo
        self._biodata_repo = biodata_repo
        self._user_repo = user_repo
        self._biodata_service = biodata_service
        self._access = access

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def create_request(self, identity: VerifiedIdentity, biodata_id: str) -> ContactRequest:
        oid = parse_biodata_id(biodata_id)
        await self._access.require_premium(identity, action="send contact requests")

        target = await self._biodata_repo.get_by_id(oid)
        if not target:
            raise NotFound("biodata not found")
        if is_self(identity.email, target.email):
            raise InvalidInput("cannot request your own biodata")

        canonical_id = str(oid)
        if await self._request_repo.find_for_pair(identity.email, canonical_id):
            raise Conflict("contact request already exists")
        try:
            doc = await self._request_repo.create_request(
                requester_email=identity.email,
                biodata_id=canonical_id,
                created_at=self._now_ms(),
            )
        except DuplicateKeyRepositoryError:
            # lost a race with a concurrent create for the same pair
            raise Conflict("contact request already exists") from None
        return ContactRequest(**doc.model_dump(by_alias=True))

    async def _transition(self, identity: VerifiedIdentity, request_id: str, status: str) -> ContactRequest:
        await self._access.require_admin(identity)
        oid = _parse_request_id(request_id)
        existing = await self._request_repo.get_by_id(oid)
        if not existing:
            raise NotFound("contact request not found")
        if existing.status != "pending":
            raise Conflict(f"contact request already {existing.status}")

        updated = await self._request_repo.transition_pending(
            oid,
            status=status,
            timestamp_field=_TIMESTAMP_FIELDS[status],
            at=self._now_ms(),
        )
        if not updated:
            # another admin decided it between the read and the write
            current = await self._request_repo.get_by_id(oid)
            raise Conflict(f"contact request already {current.status if current else 'removed'}")
        LOGGER.info("Contact request %s %s by %s", oid, status, identity.email)
        return ContactRequest(**updated.model_dump(by_alias=True))

    async def approve(self, identity: VerifiedIdentity, request_id: str) -> ContactRequest:
        return await self._transition(identity, request_id, "approved")

    async def reject(self, identity: VerifiedIdentity, request_id: str) -> ContactRequest:
        return await self._transition(identity, request_id, "rejected")

    async def _load_biodata(self, raw_id: str) -> Optional[BiodataDocument]:
        biodata_oid = object_id_or_none(raw_id)
        return await self._biodata_repo.get_by_id(biodata_oid) if biodata_oid else None

    async def _admin_entry(self, doc: ContactRequestDocument) -> AdminContactRequest:
        biodata_doc, requester = await asyncio.gather(
            self._load_biodata(doc.requested_biodata_id),
            self._user_repo.get_by_email(doc.requester_email),
        )
        biodata = await self._biodata_service.present(biodata_doc, reveal_contact=True) if biodata_doc else None
        return AdminContactRequest(
            **doc.model_dump(by_alias=True),
            biodata=biodata,
            requester=User(**requester.model_dump(by_alias=True)) if requester else None,
        )

    async def list_for_admin(
        self,
        identity: VerifiedIdentity,
        status: Optional[str] = None,
    ) -> List[AdminContactRequest]:
        await self._access.require_admin(identity)
        status = (status or "").strip().lower() or None
        if status is not None and status not in CONTACT_REQUEST_STATUSES:
            raise InvalidInput("invalid status filter", details=list(CONTACT_REQUEST_STATUSES))
        docs = await self._request_repo.list_requests(status)
        return list(await asyncio.gather(*(self._admin_entry(doc) for doc in docs)))

    async def _my_entry(self, doc: ContactRequestDocument) -> MyContactRequest:
        biodata = None
        if doc.status == "approved":
            biodata_doc = await self._load_biodata(doc.requested_biodata_id)
            if biodata_doc:
                biodata = await self._biodata_service.present(biodata_doc, reveal_contact=True)
        return MyContactRequest(**doc.model_dump(by_alias=True), biodata=biodata)

    async def list_mine(self, identity: VerifiedIdentity) -> List[MyContactRequest]:
        docs = await self._request_repo.list_for_requester(identity.email)
        return list(await asyncio.gather(*(self._my_entry(doc) for doc in docs)))


def get_contact_request_service() -> ContactRequestService:
    db = get_db()
    biodata_repo = BiodataRepository(db)
    user_repo = UserRepository(db)
    access = AccessPolicy(user_repo, biodata_repo)
    biodata_service = BiodataService(biodata_repo, user_repo, FavouriteRepository(db), access)
    return ContactRequestService(
        ContactRequestRepository(db),
        biodata_repo,
        user_repo,
        biodata_service,
        access,
    )


__all__ = ["ContactRequestService", "get_contact_request_service"]

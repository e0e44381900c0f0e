from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..integrations.identity import VerifiedIdentity
from ..models.contact_request import (
    AdminContactRequest,
    ContactRequest,
    ContactRequestCreate,
    MyContactRequest,
)
from ..services.contact_request_service import (
    ContactRequestService,
    get_contact_request_service,
)
from .deps import require_identity

router = APIRouter(tags=["contact-requests"])


@router.post("/contact-requests", response_model=ContactRequest, status_code=status.HTTP_201_CREATED)
async def create_contact_request(
    payload: ContactRequestCreate,
    caller: VerifiedIdentity = Depends(require_identity),
    service: ContactRequestService = Depends(get_contact_request_service),
) -> ContactRequest:
    return await service.create_request(caller, payload.biodata_id)


@router.get("/contact-requests", response_model=List[AdminContactRequest])
async def list_contact_requests(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    caller: VerifiedIdentity = Depends(require_identity),
    service: ContactRequestService = Depends(get_contact_request_service),
) -> List[AdminContactRequest]:
    return await service.list_for_admin(caller, status_filter)


@router.patch("/contact-requests/{request_id}/approve", response_model=ContactRequest)
async def approve_contact_request(
    request_id: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: ContactRequestService = Depends(get_contact_request_service),
) -> ContactRequest:
    return await service.approve(caller, request_id)


@router.patch("/contact-requests/{request_id}/reject", response_model=ContactRequest)
async def reject_contact_request(
    request_id: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: ContactRequestService = Depends(get_contact_request_service),
) -> ContactRequest:
    return await service.reject(caller, request_id)


@router.get("/my-contact-requests", response_model=List[MyContactRequest])
async def my_contact_requests(
    caller: VerifiedIdentity = Depends(require_identity),
    service: ContactRequestService = Depends(get_contact_request_service),
) -> List[MyContactRequest]:
    return await service.list_mine(caller)


__all__ = ["router"]

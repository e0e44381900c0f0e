"""Biodata endpoints: multipart create/update, public listing and admin delete."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from ..errors import InvalidInput
from ..integrations.identity import VerifiedIdentity
from ..models.biodata import Biodata, BiodataCreateRequest, BiodataUpsert
from ..services.biodata_service import (
    BiodataFilters,
    BiodataService,
    ProfileImage,
    get_biodata_service,
)
from ..utils.http import etag_matches, weak_etag
from .deps import optional_identity, require_identity

router = APIRouter(prefix="/biodatas", tags=["biodatas"])

PROFILE_IMAGE_FIELD = "profileImage"
_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

PayloadT = TypeVar("PayloadT", bound=BaseModel)


async def _read_payload(request: Request) -> Tuple[Dict[str, Any], Optional[ProfileImage]]:
    """Split a JSON or form body into plain fields and the optional profile image.

    The same endpoints accept JSON and multipart, so the body is read by hand
    instead of through ``UploadFile = File(...)``/``Form`` parameters.
    """

    content_type = (request.headers.get("content-type") or "").lower()
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        fields: Dict[str, Any] = {}
        image: Optional[ProfileImage] = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key != PROFILE_IMAGE_FIELD:
                    continue
                data = await value.read()
                if data:
                    image = ProfileImage(data=data, content_type=value.content_type, filename=value.filename)
            else:
                fields[key] = value
        return fields, image

    raw = await request.body()
    if not raw.strip():
        return {}, None
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("malformed JSON body") from None
    if not isinstance(body, dict):
        raise InvalidInput("request body must be a JSON object")
    return body, None


def _validate(model: Type[PayloadT], fields: Dict[str, Any]) -> PayloadT:
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        raise InvalidInput(
            "invalid biodata fields",
            details=exc.errors(include_url=False, include_context=False),
        ) from None


@router.post("", response_model=Biodata, status_code=status.HTTP_201_CREATED)
async def create_biodata(
    request: Request,
    caller: VerifiedIdentity = Depends(require_identity),
    service: BiodataService = Depends(get_biodata_service),
) -> Biodata:
    fields, image = await _read_payload(request)
    if image is None:
        raise InvalidInput(f"{PROFILE_IMAGE_FIELD} is required")
    payload = _validate(BiodataCreateRequest, fields)
    return await service.create_biodata(caller, payload, image)


@router.get("", response_model=List[Biodata])
async def list_biodatas(
    response: Response,
    biodata_type: Optional[str] = Query(default=None, alias="biodataType"),
    division: Optional[str] = Query(default=None),
    min_age: Optional[int] = Query(default=None, alias="minAge", ge=0),
    max_age: Optional[int] = Query(default=None, alias="maxAge", ge=0),
    premium: Optional[bool] = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    if_none_match: Optional[str] = Header(default=None),
    viewer: Optional[VerifiedIdentity] = Depends(optional_identity),
    service: BiodataService = Depends(get_biodata_service),
):
    filters = BiodataFilters(
        biodata_type=biodata_type,
        division=division,
        min_age=min_age,
        max_age=max_age,
        premium=premium,
        skip=skip,
        limit=limit,
    )
    items, total = await service.list_biodatas(filters, viewer)
    etag = weak_etag({"total": total, "items": [item.model_dump(by_alias=True) for item in items]})
    if etag_matches(if_none_match, etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    response.headers["ETag"] = etag
    response.headers["X-Total-Count"] = str(total)
    return items


@router.get("/by-email/{email}", response_model=Biodata)
async def get_biodata_by_email(
    email: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: BiodataService = Depends(get_biodata_service),
) -> Biodata:
    return await service.get_by_email(caller, email)


@router.get("/{biodata_id}", response_model=Biodata)
async def get_biodata(
    biodata_id: str,
    viewer: Optional[VerifiedIdentity] = Depends(optional_identity),
    service: BiodataService = Depends(get_biodata_service),
) -> Biodata:
    return await service.get_biodata(biodata_id, viewer)


@router.patch("/{biodata_id}", response_model=Biodata)
async def update_biodata(
    biodata_id: str,
    request: Request,
    caller: VerifiedIdentity = Depends(require_identity),
    service: BiodataService = Depends(get_biodata_service),
) -> Biodata:
    fields, image = await _read_payload(request)
    payload = _validate(BiodataUpsert, fields)
    return await service.update_biodata(biodata_id, caller, payload, image)


@router.delete("/{biodata_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_biodata(
    biodata_id: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: BiodataService = Depends(get_biodata_service),
) -> Response:
    await service.delete_biodata(biodata_id, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

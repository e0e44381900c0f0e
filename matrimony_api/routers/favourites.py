from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..integrations.identity import VerifiedIdentity
from ..models.favourite import (
    Favourite,
    FavouriteCreate,
    FavouriteRemovalResponse,
    FavouriteWithBiodata,
)
from ..services.favourite_service import FavouriteService, get_favourite_service
from .deps import require_identity

router = APIRouter(prefix="/favourites", tags=["favourites"])


@router.post("", response_model=Favourite, status_code=status.HTTP_201_CREATED)
async def add_favourite(
    payload: FavouriteCreate,
    caller: VerifiedIdentity = Depends(require_identity),
    service: FavouriteService = Depends(get_favourite_service),
) -> Favourite:
    return await service.add_favourite(caller, payload.biodata_id)


@router.get("", response_model=List[FavouriteWithBiodata])
async def list_favourites(
    email: Optional[str] = Query(default=None),
    caller: VerifiedIdentity = Depends(require_identity),
    service: FavouriteService = Depends(get_favourite_service),
) -> List[FavouriteWithBiodata]:
    return await service.list_favourites(caller, email)


@router.delete("/{favourite_id}", response_model=FavouriteRemovalResponse)
async def remove_favourite(
    favourite_id: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: FavouriteService = Depends(get_favourite_service),
) -> FavouriteRemovalResponse:
    await service.remove_favourite(caller, favourite_id)
    return FavouriteRemovalResponse(removed=True)


__all__ = ["router"]

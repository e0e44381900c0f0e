from typing import List

from fastapi import APIRouter, Depends, status

from ..integrations.identity import VerifiedIdentity
from ..models.user import (
    PremiumUpdateRequest,
    PremiumUpdateResponse,
    RoleUpdateRequest,
    User,
    UserCreateRequest,
    UserStatus,
)
from ..services.user_service import UserService, get_user_service
from .deps import require_identity

router = APIRouter(prefix="/users", tags=["users"])


def _public(doc) -> User:
    return User(**doc.model_dump(by_alias=True))


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    caller: VerifiedIdentity = Depends(require_identity),
    service: UserService = Depends(get_user_service),
) -> User:
    return _public(await service.create_user(caller, payload))


@router.get("", response_model=List[User])
async def list_users(
    caller: VerifiedIdentity = Depends(require_identity),
    service: UserService = Depends(get_user_service),
) -> List[User]:
    return [_public(doc) for doc in await service.list_users(caller)]


@router.get("/{email}/status", response_model=UserStatus)
async def user_status(
    email: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: UserService = Depends(get_user_service),
) -> UserStatus:
    return await service.get_status(caller, email)


@router.get("/{email}", response_model=User)
async def get_user(
    email: str,
    caller: VerifiedIdentity = Depends(require_identity),
    service: UserService = Depends(get_user_service),
) -> User:
    return _public(await service.get_user(caller, email))


@router.patch("/{email}/role", response_model=User)
async def update_role(
    email: str,
    body: RoleUpdateRequest,
    caller: VerifiedIdentity = Depends(require_identity),
    service: UserService = Depends(get_user_service),
) -> User:
    return _public(await service.set_role(caller, email, body.role))


@router.patch("/{email}/premium", response_model=PremiumUpdateResponse)
async def update_premium(
    email: str,
    body: PremiumUpdateRequest,
    caller: VerifiedIdentity = Depends(require_identity),
    service: UserService = Depends(get_user_service),
) -> PremiumUpdateResponse:
    user, synced = await service.set_premium(caller, email, body.is_premium)
    return PremiumUpdateResponse(user=_public(user), biodataSynced=synced)


__all__ = ["router"]

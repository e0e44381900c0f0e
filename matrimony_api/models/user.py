from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .identifiers import PyObjectId

UserRole = Literal["user", "admin"]


class UserDocument(BaseModel):
    """Canonical representation of a user document stored in MongoDB."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    email: str
    uid: Optional[str] = None
    name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    role: UserRole = "user"
    is_premium: bool = Field(default=False, alias="isPremium")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class User(BaseModel):
    """Public-facing user record returned to clients."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    email: str
    uid: Optional[str] = None
    name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    role: UserRole = "user"
    is_premium: bool = Field(default=False, alias="isPremium")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")


class UserCreateRequest(BaseModel):
    """Payload for ``POST /users``; email defaults to the caller's own."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=120)
    photo_url: Optional[str] = Field(default=None, alias="photoURL", max_length=1024)


class RoleUpdateRequest(BaseModel):
    role: UserRole


class PremiumUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_premium: bool = Field(alias="isPremium")


class PremiumUpdateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: User
    biodata_synced: bool = Field(default=False, alias="biodataSynced")


class UserStatus(BaseModel):
    """Role and effective premium flag used by the site to toggle admin/premium UI."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    role: UserRole
    is_admin: bool = Field(alias="isAdmin")
    is_premium: bool = Field(alias="isPremium")


__all__ = [
    "PremiumUpdateRequest",
    "PremiumUpdateResponse",
    "RoleUpdateRequest",
    "User",
    "UserCreateRequest",
    "UserDocument",
    "UserRole",
    "UserStatus",
]

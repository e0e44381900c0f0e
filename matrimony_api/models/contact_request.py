from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .biodata import Biodata
from .identifiers import PyObjectId
from .user import User

ContactRequestStatus = Literal["pending", "approved", "rejected"]

CONTACT_REQUEST_STATUSES = ("pending", "approved", "rejected")


class ContactRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    biodata_id: str = Field(
        validation_alias=AliasChoices("biodataId", "requestedBiodataId", "biodata_id"),
        min_length=1,
    )


class ContactRequestDocument(BaseModel):
    """A premium user's request to see a biodata's contact details."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    requester_email: str = Field(alias="requesterEmail")
    requested_biodata_id: str = Field(alias="requestedBiodataId")
    status: ContactRequestStatus = "pending"
    created_at: int = Field(alias="createdAt")
    approved_at: Optional[int] = Field(default=None, alias="approvedAt")
    rejected_at: Optional[int] = Field(default=None, alias="rejectedAt")


class ContactRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    requester_email: str = Field(alias="requesterEmail")
    requested_biodata_id: str = Field(alias="requestedBiodataId")
    status: ContactRequestStatus
    created_at: int = Field(alias="createdAt")
    approved_at: Optional[int] = Field(default=None, alias="approvedAt")
    rejected_at: Optional[int] = Field(default=None, alias="rejectedAt")


class AdminContactRequest(ContactRequest):
    """Admin listing entry joined with the target biodata and the requester."""

    biodata: Optional[Biodata] = None
    requester: Optional[User] = None


class MyContactRequest(ContactRequest):
    """Requester listing entry; ``biodata`` is only filled once approved."""

    biodata: Optional[Biodata] = None


__all__ = [
    "AdminContactRequest",
    "CONTACT_REQUEST_STATUSES",
    "ContactRequest",
    "ContactRequestCreate",
    "ContactRequestDocument",
    "ContactRequestStatus",
    "MyContactRequest",
]

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .identifiers import PyObjectId

# Fields only the owner, an admin, or an approved contact request may see
CONTACT_FIELDS = ("contactEmail", "mobileNumber")

# Write-side length limits; stored documents are read back without them
TEXT_FIELD_LIMITS: Dict[str, int] = {
    "biodata_type": 32,
    "name": 120,
    "dob": 32,
    "height": 32,
    "weight": 32,
    "occupation": 120,
    "race": 64,
    "father_name": 120,
    "mother_name": 120,
    "permanent_division": 64,
    "present_division": 64,
    "partner_age": 32,
    "partner_height": 32,
    "partner_weight": 32,
    "contact_email": 254,
    "mobile_number": 32,
    "marital_status": 32,
}


def _text_or_none(value: Any) -> Any:
    # Form posts and JSON clients disagree on numbers vs strings for measurements
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return str(value)


class BiodataFields(BaseModel):
    """Profile fields shared by the stored document and the write payloads."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    biodata_type: Optional[str] = Field(default=None, alias="biodataType")
    name: Optional[str] = None
    dob: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    age: Optional[Any] = None
    occupation: Optional[str] = None
    race: Optional[str] = None
    father_name: Optional[str] = Field(default=None, alias="fatherName")
    mother_name: Optional[str] = Field(default=None, alias="motherName")
    permanent_division: Optional[str] = Field(default=None, alias="permanentDivision")
    present_division: Optional[str] = Field(default=None, alias="presentDivision")
    partner_age: Optional[str] = Field(default=None, alias="partnerAge")
    partner_height: Optional[str] = Field(default=None, alias="partnerHeight")
    partner_weight: Optional[str] = Field(default=None, alias="partnerWeight")
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    marital_status: Optional[str] = Field(default=None, alias="maritalStatus")

    @field_validator(*TEXT_FIELD_LIMITS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _text_or_none(value)

    @field_validator("age", mode="before")
    @classmethod
    def _blank_age(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BiodataUpsert(BiodataFields):
    """Payload accepted when creating or updating a biodata.

    ``isPremium`` is only honoured for admins; the owner email and the image URL
    are never taken from the payload.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    age: Optional[int] = Field(default=None, ge=0, le=130)
    is_premium: Optional[bool] = Field(default=None, alias="isPremium")

    @field_validator(*TEXT_FIELD_LIMITS)
    @classmethod
    def _within_limit(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        limit = TEXT_FIELD_LIMITS[info.field_name]
        if value is not None and len(value) > limit:
            raise ValueError(f"must be at most {limit} characters")
        return value


class BiodataCreateRequest(BiodataUpsert):
    biodata_type: str = Field(alias="biodataType", min_length=1)
    name: str = Field(min_length=1)


class BiodataDocument(BiodataFields):
    """Canonical biodata document stored in the ``members`` collection."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    email: str
    profile_image: Optional[str] = Field(default=None, alias="profileImage")
    is_premium: Optional[bool] = Field(default=None, alias="isPremium")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")


class Biodata(BiodataFields):
    """Biodata returned to clients; ``isPremium`` is always the effective value."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    email: str
    profile_image: Optional[str] = Field(default=None, alias="profileImage")
    is_premium: bool = Field(default=False, alias="isPremium")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")


__all__ = [
    "Biodata",
    "BiodataCreateRequest",
    "BiodataDocument",
    "BiodataFields",
    "BiodataUpsert",
    "CONTACT_FIELDS",
]

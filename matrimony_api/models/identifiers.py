"""Identifier and email helpers shared across models and repositories."""

from __future__ import annotations

from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic.functional_serializers import PlainSerializer
from pydantic.functional_validators import BeforeValidator


def _validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value.strip()):
        return ObjectId(value.strip())
    raise ValueError("Invalid ObjectId value")


PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(_validate_object_id),
    PlainSerializer(lambda value: str(value), return_type=str),
]


def normalize_email(value: Any) -> str:
    """Canonical stored form of an email address: trimmed and lower-cased."""

    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def object_id_or_none(value: Any) -> Optional[ObjectId]:
    """Parse a biodata/favourite/request reference, returning None when malformed."""

    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value.strip()):
        return ObjectId(value.strip())
    return None


__all__ = ["PyObjectId", "normalize_email", "object_id_or_none"]

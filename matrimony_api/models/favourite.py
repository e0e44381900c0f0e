from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .biodata import Biodata
from .identifiers import PyObjectId


class FavouriteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    biodata_id: str = Field(validation_alias=AliasChoices("biodata_id", "biodataId"), min_length=1)


class FavouriteDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    user_email: str = Field(alias="userEmail")
    biodata_id: str
    added_at: int = Field(alias="addedAt")


class Favourite(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    user_email: str = Field(alias="userEmail")
    biodata_id: str
    added_at: int = Field(alias="addedAt")


class FavouriteWithBiodata(Favourite):
    biodata: Optional[Biodata] = None


class FavouriteRemovalResponse(BaseModel):
    removed: bool = True


__all__ = [
    "Favourite",
    "FavouriteCreate",
    "FavouriteDocument",
    "FavouriteRemovalResponse",
    "FavouriteWithBiodata",
]

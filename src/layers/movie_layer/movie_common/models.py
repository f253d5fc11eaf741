from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class MovieFields(BaseModel):
    """The mutable part of a movie. Every update resupplies all of it."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    publishing_year: Optional[int] = Field(None, alias="publishingYear")
    poster: Optional[str] = None


class Movie(MovieFields):
    id: str
    created_by: str = Field(..., alias="createdBy")
    # Null when the caller's token carries no email claim.
    created_by_email: Optional[str] = Field(None, alias="createdByEmail")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class MoviePage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[Movie] = Field(default_factory=list)
    next_token: Optional[str] = Field(None, alias="nextToken")

    def to_json(self) -> Dict[str, Any]:
        return {
            "items": [item.to_json() for item in self.items],
            "nextToken": self.next_token,
        }

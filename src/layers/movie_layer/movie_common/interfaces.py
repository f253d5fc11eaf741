from typing import Optional
from pydantic import Field, field_validator, model_validator

from movie_common.config import get_settings
from movie_common.decorators import AuthRequest


class ListMoviesRequest(AuthRequest):
    limit: Optional[int] = Field(default=None, gt=0)
    next_token: Optional[str] = Field(default=None, alias="nextToken")

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v):
        max_limit = get_settings().max_list_limit
        if v is not None and v > max_limit:
            raise ValueError(f"limit must be at most {max_limit}")
        return v


class MovieIdRequest(AuthRequest):
    id: str = Field(..., min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        return v.strip() if isinstance(v, str) else v


class GetMovieRequest(MovieIdRequest):
    pass


class DeleteMovieRequest(MovieIdRequest):
    pass


class MovieFieldsRequest(AuthRequest):
    title: str = Field(..., min_length=1)
    publishing_year: Optional[int] = Field(default=None, alias="publishingYear")
    poster: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_publishing_year(self):
        if self.publishing_year is None and get_settings().require_publishing_year:
            raise ValueError("publishingYear is required")
        return self


class CreateMovieRequest(MovieFieldsRequest):
    pass


class UpdateMovieRequest(MovieFieldsRequest, MovieIdRequest):
    pass


class UploadGrantRequest(AuthRequest):
    content_type: Optional[str] = Field(default=None, alias="contentType")

    @property
    def origin(self) -> Optional[str]:
        return self.request_headers.get("origin")

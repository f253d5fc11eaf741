"""
AppSync direct Lambda resolver for the movie schema.

AppSync reports the class name of an exception raised by the function as the
GraphQL ``errorType``, so every AppError is re-raised as the exception class
named after its kind.
"""

from typing import Any, Callable, Dict, Optional, Type
from pydantic import ValidationError
from loguru import logger

from movie_common.errors import AppError
from movie_common.identity import extract_identity
from movie_common.interfaces import (
    CreateMovieRequest,
    DeleteMovieRequest,
    GetMovieRequest,
    ListMoviesRequest,
    UpdateMovieRequest,
)
from movie_common.service import MovieService

JsonDict = Dict[str, Any]


class ResolverError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ResolverError):
    pass


class Unauthorized(ResolverError):
    pass


class InvalidArgument(ResolverError):
    pass


class StoreUnavailable(ResolverError):
    pass


ERROR_TYPES: Dict[str, Type[ResolverError]] = {
    cls.__name__: cls for cls in (NotFound, Unauthorized, InvalidArgument, StoreUnavailable)
}


def _list_movies(service: MovieService, request: ListMoviesRequest) -> JsonDict:
    return service.list_movies(
        request.identity, limit=request.limit, next_token=request.next_token
    ).to_json()


def _get_movie(service: MovieService, request: GetMovieRequest) -> JsonDict:
    return service.get_movie(request.identity, request.id).to_json()


def _create_movie(service: MovieService, request: CreateMovieRequest) -> JsonDict:
    return service.create_movie(
        request.identity,
        title=request.title,
        publishing_year=request.publishing_year,
        poster=request.poster,
    ).to_json()


def _update_movie(service: MovieService, request: UpdateMovieRequest) -> JsonDict:
    return service.update_movie(
        request.identity,
        request.id,
        title=request.title,
        publishing_year=request.publishing_year,
        poster=request.poster,
    ).to_json()


def _delete_movie(service: MovieService, request: DeleteMovieRequest) -> JsonDict:
    return service.delete_movie(request.identity, request.id).to_json()


RESOLVERS: Dict[str, tuple[type, Callable[[MovieService, Any], JsonDict]]] = {
    "listMovies": (ListMoviesRequest, _list_movies),
    "getMovie": (GetMovieRequest, _get_movie),
    "createMovie": (CreateMovieRequest, _create_movie),
    "updateMovie": (UpdateMovieRequest, _update_movie),
    "deleteMovie": (DeleteMovieRequest, _delete_movie),
}


def resolve(event: Optional[JsonDict], service: MovieService) -> JsonDict:
    event = event or {}
    field_name = (event.get("info") or {}).get("fieldName") or event.get("fieldName")

    if field_name not in RESOLVERS:
        raise InvalidArgument(f"Unknown field {field_name!r}")
    model, resolver = RESOLVERS[field_name]

    identity = extract_identity(event)
    if identity is None:
        raise Unauthorized("Unauthorized: Missing or invalid token")

    arguments = {k: v for k, v in (event.get("arguments") or {}).items() if v is not None}
    headers = ((event.get("request") or {}).get("headers")) or {}

    try:
        request = model(**{**arguments, "identity": identity, "request_headers": headers})
    except ValidationError as e:
        logger.warning(f"{field_name} validation failed: {e.errors()}")
        raise InvalidArgument(e.json(include_url=False, include_input=False))

    try:
        return resolver(service, request)
    except AppError as e:
        logger.warning(f"{field_name} failed with {e.error_code}: {e.message}")
        error_cls = ERROR_TYPES.get(e.error_code, ResolverError)
        raise error_cls(e.message) from e

from typing import Optional
from loguru import logger

from movie_common.config import Settings, get_settings
from movie_common.dynamo_client import MovieStore, get_store
from movie_common.errors import BadRequestError, NotFoundError, UnauthorizedError
from movie_common.identity import Identity
from movie_common.models import Movie, MovieFields, MoviePage
from movie_common.policy import Decision, ListScope, Operation, can_access, list_scope


class MovieService:
    """
    Resolves the five movie operations for one caller.

    Calls are independent; the store is the only shared state. Updates and
    deletes authorize against the current record before writing, and the
    write itself is conditioned on the owner that was checked.
    """

    def __init__(self, store: Optional[MovieStore] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._store = store

    @property
    def store(self) -> MovieStore:
        if self._store is None:
            self._store = get_store()
        return self._store

    def _authorize(self, identity: Identity, movie: Movie, operation: Operation) -> None:
        decision = can_access(identity, movie.created_by, operation, self.settings.admin_group)
        if decision is Decision.DENY:
            logger.warning(
                f"Denied {operation.value} on movie {movie.id} for {identity.subject}"
            )
            raise UnauthorizedError(f"Unauthorized to {operation.value} this movie")

    def _require(self, movie_id: str) -> Movie:
        if not movie_id:
            raise BadRequestError("Movie id is required")
        movie = self.store.get_by_id(movie_id)
        if movie is None:
            raise NotFoundError()
        return movie

    @staticmethod
    def _fields(title, publishing_year, poster) -> MovieFields:
        if title is None or not str(title).strip():
            raise BadRequestError("title is required")
        return MovieFields(title=str(title).strip(), publishing_year=publishing_year, poster=poster)

    def list_movies(
        self, identity: Identity, limit: Optional[int] = None, next_token: Optional[str] = None
    ) -> MoviePage:
        limit = limit or self.settings.default_list_limit
        scope = list_scope(identity, self.settings.admin_group)

        if scope is ListScope.ALL:
            page = self.store.list_all(limit, next_token)
        else:
            page = self.store.list_by_owner(identity.subject, limit, next_token)

        if not page.items:
            page = MoviePage(items=[], next_token=None)

        logger.info(
            f"listMovies scope={scope.value} subject={identity.subject} count={len(page.items)}"
        )
        return page

    def get_movie(self, identity: Identity, movie_id: str) -> Movie:
        movie = self._require(movie_id)
        self._authorize(identity, movie, Operation.READ)
        return movie

    def create_movie(
        self,
        identity: Identity,
        title: Optional[str],
        publishing_year: Optional[int] = None,
        poster: Optional[str] = None,
    ) -> Movie:
        fields = self._fields(title, publishing_year, poster)
        movie = self.store.put_new(fields, owner=identity.subject, owner_email=identity.email)
        logger.info(f"createMovie id={movie.id} subject={identity.subject}")
        return movie

    def update_movie(
        self,
        identity: Identity,
        movie_id: str,
        title: Optional[str],
        publishing_year: Optional[int] = None,
        poster: Optional[str] = None,
    ) -> Movie:
        fields = self._fields(title, publishing_year, poster)
        current = self._require(movie_id)
        self._authorize(identity, current, Operation.UPDATE)

        updated = self.store.conditional_update(
            movie_id, fields, expected_owner=current.created_by
        )
        if updated is None:
            raise NotFoundError()

        logger.info(f"updateMovie id={movie_id} subject={identity.subject}")
        return updated

    def delete_movie(self, identity: Identity, movie_id: str) -> Movie:
        current = self._require(movie_id)
        self._authorize(identity, current, Operation.DELETE)

        deleted = self.store.delete(movie_id, expected_owner=current.created_by)
        if deleted is None:
            raise NotFoundError()

        logger.info(f"deleteMovie id={movie_id} subject={identity.subject}")
        return deleted

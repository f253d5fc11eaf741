"""
Shared fixtures for the movie catalog test suite.

- identities: alice and bob are ordinary users, root is in the Admins group.
- fake_store: an in-memory stand-in for MovieStore with the same method
  contract (None for missing records, UnauthorizedError on owner mismatch).
- dynamo: a real boto3 client wrapped in a botocore Stubber, so no
  request ever leaves the process.
- load_handler: imports a Lambda handler module from src/functions.
"""

import os
import json
import uuid
import importlib.util
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import boto3
import pytest
from botocore.stub import Stubber

from movie_common.config import Settings, get_settings
from movie_common.errors import StoreUnavailableError, UnauthorizedError
from movie_common.identity import Identity
from movie_common.models import Movie, MovieFields, MoviePage
from movie_common.service import MovieService

FUNCTIONS_DIR = Path(__file__).resolve().parent.parent / "src" / "functions"


class FakeMovieStore:
    """Dict-backed MovieStore. Tokens are stringified offsets."""

    def __init__(self):
        self.records: Dict[str, Movie] = {}
        self.unavailable = False
        self.calls: List[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.unavailable:
            raise StoreUnavailableError()

    def _page(self, items: List[Movie], limit: int, page_token: Optional[str]) -> MoviePage:
        start = int(page_token) if page_token else 0
        chunk = items[start : start + limit]
        end = start + len(chunk)
        return MoviePage(items=chunk, next_token=str(end) if end < len(items) else None)

    def add(self, owner: str, title: str, **extra) -> Movie:
        movie = Movie(id=str(uuid.uuid4()), title=title, createdBy=owner, **extra)
        self.records[movie.id] = movie
        return movie

    def get_by_id(self, movie_id: str) -> Optional[Movie]:
        self._check("get_by_id")
        return self.records.get(movie_id)

    def put_new(self, fields: MovieFields, owner: str, owner_email: Optional[str]) -> Movie:
        self._check("put_new")
        movie = Movie(
            id=str(uuid.uuid4()),
            title=fields.title,
            publishingYear=fields.publishing_year,
            poster=fields.poster,
            createdBy=owner,
            createdByEmail=owner_email,
        )
        self.records[movie.id] = movie
        return movie

    def _guard(self, movie_id: str, expected_owner: Optional[str]) -> Optional[Movie]:
        current = self.records.get(movie_id)
        if current is None:
            return None
        if expected_owner and current.created_by != expected_owner:
            raise UnauthorizedError("Movie belongs to another user")
        return current

    def conditional_update(self, movie_id, fields, expected_owner=None):
        self._check("conditional_update")
        current = self._guard(movie_id, expected_owner)
        if current is None:
            return None
        updated = current.model_copy(
            update={
                "title": fields.title,
                "publishing_year": fields.publishing_year,
                "poster": fields.poster,
            }
        )
        self.records[movie_id] = updated
        return updated

    def delete(self, movie_id, expected_owner=None):
        self._check("delete")
        if self._guard(movie_id, expected_owner) is None:
            return None
        return self.records.pop(movie_id)

    def list_all(self, limit, page_token=None):
        self._check("list_all")
        return self._page(list(self.records.values()), limit, page_token)

    def list_by_owner(self, owner, limit, page_token=None):
        self._check("list_by_owner")
        owned = [m for m in self.records.values() if m.created_by == owner]
        return self._page(owned, limit, page_token)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(table_name="Movies", poster_bucket_name="posters-bucket")


@pytest.fixture
def alice() -> Identity:
    return Identity(subject="alice-sub", email="alice@example.com", groups=frozenset())


@pytest.fixture
def bob() -> Identity:
    return Identity(subject="bob-sub", email="bob@example.com", groups=frozenset({"Users"}))


@pytest.fixture
def admin() -> Identity:
    return Identity(subject="root-sub", email="root@example.com", groups=frozenset({"Admins"}))


@pytest.fixture
def fake_store() -> FakeMovieStore:
    return FakeMovieStore()


@pytest.fixture
def service(fake_store, settings) -> MovieService:
    return MovieService(store=fake_store, settings=settings)


@pytest.fixture
def dynamo():
    client = boto3.client("dynamodb", region_name="us-east-1")
    with Stubber(client) as stubber:
        yield SimpleNamespace(client=client, stubber=stubber)
        stubber.assert_no_pending_responses()


@pytest.fixture
def lambda_context():
    return SimpleNamespace(aws_request_id="req-123", function_name="test")


@pytest.fixture
def load_handler():
    """Imports src/functions/<relative>/handler.py under a unique module name."""

    def _load(relative: str):
        path = FUNCTIONS_DIR / relative / "handler.py"
        name = "handler_" + relative.replace("/", "_")
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return _load


@pytest.fixture
def make_event():
    """Builds an API Gateway (REST) proxy event with Cognito claims."""

    def _make_event(
        identity: Optional[Identity] = None,
        body=None,
        path: Optional[dict] = None,
        query: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> dict:
        claims = {}
        if identity is not None:
            claims = {"sub": identity.subject, "email": identity.email}
            if identity.groups:
                claims["cognito:groups"] = ",".join(sorted(identity.groups))

        return {
            "requestContext": {"authorizer": {"claims": claims}},
            "body": json.dumps(body) if body is not None else None,
            "pathParameters": path,
            "queryStringParameters": query,
            "headers": headers or {},
        }

    return _make_event

import json
import uuid
import base64
import binascii
import functools
import boto3
from boto3.dynamodb.types import TypeSerializer, TypeDeserializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from loguru import logger

from movie_common.config import Settings, get_settings
from movie_common.errors import BadRequestError, StoreUnavailableError, UnauthorizedError
from movie_common.models import Movie, MovieFields, MoviePage

CONDITION_FAILED = "ConditionalCheckFailedException"


class MovieStore:
    """
    DynamoDB adapter for the movie table.

    The table is keyed by ``id``; a global secondary index on ``createdBy``
    (projection ALL) serves the owner scoped listing.
    """

    def __init__(self, client=None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.table_name = self.settings.table_name
        self.index_name = self.settings.owner_index_name

        self.client = client or boto3.client(
            "dynamodb",
            region_name=self.settings.region_name,
            config=Config(
                retries={"max_attempts": self.settings.store_max_attempts, "mode": "standard"},
                connect_timeout=self.settings.store_timeout_seconds,
                read_timeout=self.settings.store_timeout_seconds,
            ),
        )
        self.serializer = TypeSerializer()
        self.deserializer = TypeDeserializer()

    def _replace_decimals(self, obj):
        """Recursively converts Decimal to int/float for JSON serialization."""
        if isinstance(obj, list):
            return [self._replace_decimals(i) for i in obj]
        elif isinstance(obj, dict):
            return {k: self._replace_decimals(v) for k, v in obj.items()}
        elif isinstance(obj, Decimal):
            return int(obj) if obj % 1 == 0 else float(obj)
        return obj

    def _sanitize_float(self, obj):
        """Recursively converts float to Decimal for DynamoDB storage."""
        if isinstance(obj, float):
            return Decimal(str(obj))
        elif isinstance(obj, dict):
            return {k: self._sanitize_float(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._sanitize_float(i) for i in obj]
        return obj

    def to_dynamo_json(self, data: dict) -> dict:
        """Converts a plain dict to DynamoDB JSON ({"S": "val"} etc)."""
        return self.serializer.serialize(self._sanitize_float(data))["M"]

    def from_dynamo_json(self, item: dict) -> dict:
        return self._replace_decimals(
            {k: self.deserializer.deserialize(v) for k, v in item.items()}
        )

    def _encode_token(self, key_dict: Optional[dict]) -> Optional[str]:
        if not key_dict:
            return None
        json_str = json.dumps(self.from_dynamo_json(key_dict), sort_keys=True)
        return base64.urlsafe_b64encode(json_str.encode()).decode()

    def _decode_token(self, token_str: Optional[str]) -> Optional[dict]:
        if not token_str:
            return None
        try:
            json_str = base64.urlsafe_b64decode(token_str.encode()).decode()
            key = json.loads(json_str)
        except (binascii.Error, UnicodeDecodeError, ValueError):
            logger.warning("Failed to decode pagination token.")
            raise BadRequestError("Invalid nextToken")
        if not isinstance(key, dict) or not key:
            raise BadRequestError("Invalid nextToken")
        return self.to_dynamo_json(key)

    def _to_movie(self, item: dict) -> Movie:
        try:
            return Movie.model_validate(self.from_dynamo_json(item))
        except (ValidationError, TypeError) as e:
            logger.error(f"Malformed movie item in {self.table_name}: {e}")
            raise StoreUnavailableError("Malformed record returned by the store")

    def _call(self, operation: str, **kwargs) -> Dict[str, Any]:
        """Runs one DynamoDB call, translating infrastructure faults.

        Conditional check failures are re-raised untouched so the caller
        can turn them into a domain outcome.
        """
        try:
            return getattr(self.client, operation)(**kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == CONDITION_FAILED:
                raise
            message = e.response.get("Error", {}).get("Message", "")
            if code == "ValidationException":
                logger.warning(f"Rejected {operation}: {message}")
                raise BadRequestError(message or "Invalid request")
            logger.error(f"Error on {operation} ({code}): {message}")
            raise StoreUnavailableError() from e
        except BotoCoreError as e:
            logger.error(f"Error on {operation}: {e}")
            raise StoreUnavailableError() from e

    def _condition_failed(self, error: ClientError, expected_owner: Optional[str]) -> None:
        """
        Tells "no such record" apart from "record owned by someone else"
        using the snapshot returned with the failed condition.
        """
        existing = error.response.get("Item")
        if not existing:
            return None

        owner = self.from_dynamo_json(existing).get("createdBy")
        logger.warning(
            f"Conditional write on {self.table_name} rejected: owner {owner!r} != {expected_owner!r}"
        )
        raise UnauthorizedError("Movie belongs to another user")

    def _ownership_condition(self, expected_owner: Optional[str]):
        names = {"#id": "id"}
        values = {}
        condition = "attribute_exists(#id)"
        if expected_owner:
            condition += " AND #createdBy = :owner"
            names["#createdBy"] = "createdBy"
            values[":owner"] = {"S": expected_owner}
        return condition, names, values

    def get_by_id(self, movie_id: str) -> Optional[Movie]:
        response = self._call(
            "get_item",
            TableName=self.table_name,
            Key={"id": {"S": movie_id}},
            ConsistentRead=True,
        )
        item = response.get("Item")
        return self._to_movie(item) if item else None

    def put_new(self, fields: MovieFields, owner: str, owner_email: Optional[str]) -> Movie:
        timestamp = datetime.now(timezone.utc).isoformat()
        record = {
            "id": str(uuid.uuid4()),
            "title": fields.title,
            "publishingYear": fields.publishing_year,
            "poster": fields.poster,
            "createdBy": owner,
            "createdByEmail": owner_email,
            "createdAt": timestamp,
            "updatedAt": timestamp,
        }
        record = {k: v for k, v in record.items() if v is not None}

        try:
            self._call(
                "put_item",
                TableName=self.table_name,
                Item=self.to_dynamo_json(record),
                ConditionExpression="attribute_not_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
            )
        except ClientError as e:
            logger.error(f"Generated id {record['id']} already exists")
            raise StoreUnavailableError() from e

        return Movie.model_validate(record)

    def conditional_update(
        self, movie_id: str, fields: MovieFields, expected_owner: Optional[str] = None
    ) -> Optional[Movie]:
        """
        Rewrites title, publishingYear and poster in one atomic UpdateItem.
        Returns None when the record does not exist at write time.
        """
        data = {
            "title": fields.title,
            "publishingYear": fields.publishing_year,
            "poster": fields.poster,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }

        condition, attr_names, attr_values = self._ownership_condition(expected_owner)
        set_parts: List[str] = []
        remove_parts: List[str] = []
        raw_values = {}

        for key, value in data.items():
            attr_names[f"#{key}"] = key
            if value is None:
                remove_parts.append(f"#{key}")
            else:
                set_parts.append(f"#{key} = :{key}")
                raw_values[f":{key}"] = value

        attr_values.update(self.to_dynamo_json(raw_values))
        expression = "SET " + ", ".join(set_parts)
        if remove_parts:
            expression += " REMOVE " + ", ".join(remove_parts)

        try:
            response = self._call(
                "update_item",
                TableName=self.table_name,
                Key={"id": {"S": movie_id}},
                UpdateExpression=expression,
                ConditionExpression=condition,
                ExpressionAttributeNames=attr_names,
                ExpressionAttributeValues=attr_values,
                ReturnValues="ALL_NEW",
                ReturnValuesOnConditionCheckFailure="ALL_OLD",
            )
        except ClientError as e:
            return self._condition_failed(e, expected_owner)

        attributes = response.get("Attributes")
        if not attributes:
            logger.error(f"update_item on {movie_id} returned no attributes")
            raise StoreUnavailableError("Malformed response from the store")
        return self._to_movie(attributes)

    def delete(self, movie_id: str, expected_owner: Optional[str] = None) -> Optional[Movie]:
        """Deletes a movie, returning its last state, or None if it did not exist."""
        condition, attr_names, attr_values = self._ownership_condition(expected_owner)
        kwargs = {
            "TableName": self.table_name,
            "Key": {"id": {"S": movie_id}},
            "ConditionExpression": condition,
            "ExpressionAttributeNames": attr_names,
            "ReturnValues": "ALL_OLD",
            "ReturnValuesOnConditionCheckFailure": "ALL_OLD",
        }
        if attr_values:
            kwargs["ExpressionAttributeValues"] = attr_values

        try:
            response = self._call("delete_item", **kwargs)
        except ClientError as e:
            return self._condition_failed(e, expected_owner)

        attributes = response.get("Attributes")
        if not attributes:
            logger.error(f"delete_item on {movie_id} returned no attributes")
            raise StoreUnavailableError("Malformed response from the store")
        return self._to_movie(attributes)

    def _page(self, response: Dict[str, Any]) -> MoviePage:
        if "Items" not in response:
            raise StoreUnavailableError("Malformed response from the store")
        return MoviePage(
            items=[self._to_movie(item) for item in response["Items"]],
            next_token=self._encode_token(response.get("LastEvaluatedKey")),
        )

    def list_all(self, limit: int, page_token: Optional[str] = None) -> MoviePage:
        scan_kwargs = {"TableName": self.table_name, "Limit": limit}
        start_key = self._decode_token(page_token)
        if start_key:
            scan_kwargs["ExclusiveStartKey"] = start_key
        return self._page(self._call("scan", **scan_kwargs))

    def list_by_owner(self, owner: str, limit: int, page_token: Optional[str] = None) -> MoviePage:
        query_kwargs = {
            "TableName": self.table_name,
            "IndexName": self.index_name,
            "KeyConditionExpression": "#createdBy = :owner",
            "ExpressionAttributeNames": {"#createdBy": "createdBy"},
            "ExpressionAttributeValues": {":owner": {"S": owner}},
            "Limit": limit,
        }
        start_key = self._decode_token(page_token)
        if start_key:
            query_kwargs["ExclusiveStartKey"] = start_key
        return self._page(self._call("query", **query_kwargs))


@functools.lru_cache(maxsize=1)
def get_store() -> MovieStore:
    return MovieStore()

from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union, TypedDict
from pydantic import BaseModel, ConfigDict, ValidationError, Field
from movie_common.errors import AppError
from movie_common.identity import Identity, extract_identity
from movie_common.logging_config import configure_logging, request_context
from movie_common.responses import (
    bad_request,
    from_app_error,
    internal_error,
    unauthorized,
    unprocessable_entity,
)
from loguru import logger
import functools
import base64
import json

T = TypeVar("T", bound=BaseModel)
JsonDict = Dict[str, Any]


class APIGatewayResponse(TypedDict):
    statusCode: int
    body: str
    headers: Dict[str, str]


Response = Union[APIGatewayResponse, Dict[str, Any]]


class AuthRequest(BaseModel):
    """Base class for all authenticated requests."""

    model_config = ConfigDict(populate_by_name=True)

    identity: Identity = Field(description="Injected automatically by Auth Middleware")
    request_headers: Dict[str, str] = Field(
        default_factory=dict, description="Lower-cased request headers"
    )


def _extract_auth_data(
    event: JsonDict, require_auth: bool
) -> tuple[Dict[str, Any], Optional[Response]]:
    """
    Extracts the caller identity to inject into the model.
    """
    identity = extract_identity(event)

    if require_auth and identity is None:
        logger.warning("Unauthorized access. Context: {}", event.get("requestContext"))
        return {}, unauthorized("Unauthorized: Missing or invalid token")

    auth_data = {}
    if identity is not None:
        auth_data["identity"] = identity
    return auth_data, None


def _parse_body(event: JsonDict) -> tuple[Dict[str, Any], Optional[Response]]:
    """Parses JSON body safely."""
    raw_body = event.get("body")
    if not raw_body:
        return {}, None

    try:
        if event.get("isBase64Encoded"):
            raw_body = base64.b64decode(raw_body).decode("utf-8")
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return {}, bad_request("Invalid JSON body")

    if not isinstance(body, dict):
        return {}, bad_request("JSON body must be an object")
    return body, None


def _merge_request_data(event: JsonDict, body: Dict, auth_data: Dict) -> Dict[str, Any]:
    qs = event.get("queryStringParameters") or {}
    path = event.get("pathParameters") or {}
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    # Path parameters name the target record; the body cannot redirect it.
    return {**qs, **body, **path, "request_headers": headers, **auth_data}


def lambda_wrapper(
    model: Type[T],
    require_auth: bool = True,
) -> Callable[[Callable[[T, Any], Any]], Callable[..., Any]]:
    """
    Decorator that hydrates a Pydantic model from an API Gateway event.

    AppError raised by the handler becomes a JSON error carrying its kind;
    anything else is logged and reported as a 500.

    Args:
        model: The Pydantic class to validate against.
        require_auth: If True, blocks requests without a caller identity.
    """

    def decorator(func: Callable[[T, Any], Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(event: Optional[JsonDict], context: Any) -> Any:
            configure_logging()
            event = event or {}

            with request_context(context, handler=func.__module__):
                try:
                    auth_data, err = _extract_auth_data(event, require_auth)
                    if err:
                        return err

                    body_data, err = _parse_body(event)
                    if err:
                        return err

                    request_data = _merge_request_data(event, body_data, auth_data)

                    try:
                        request_model = model(**request_data)
                    except ValidationError as e:
                        logger.warning(f"Validation failed: {e.errors()}")
                        return unprocessable_entity(
                            error=e.json(include_url=False, include_input=False)
                        )

                    return func(request_model, context)

                except AppError as e:
                    logger.warning(f"{e.error_code}: {e.message}")
                    return from_app_error(e)

                except Exception as e:
                    logger.exception("Unhandled exception in lambda_wrapper")
                    return internal_error()

        return wrapper

    return decorator

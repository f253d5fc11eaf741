from typing import Any, Optional, Dict, Union
import json

from movie_common.errors import AppError

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
}

Body = Union[Dict[str, Any], list]


def api_response(
    status_code: int,
    body: Optional[Body] = None,
    error: Optional[str] = None,
    error_type: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Centralized API Gateway response formatter.

    Args:
        status_code: HTTP status code
        body: Response body
        error: Error message (if error, body is ignored)
        error_type: Error kind reported next to the message
        headers: Custom headers to include

    Returns:
        Formatted Lambda response for API Gateway
    """
    final_headers = (
        _DEFAULT_HEADERS if headers is None else {**_DEFAULT_HEADERS, **headers}
    )
    payload = {"message": error, "errorType": error_type} if error else body

    return {
        "statusCode": status_code,
        "headers": final_headers,
        "body": json.dumps(payload) if payload is not None else "",
    }


def success(
    data: Body,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Success response (2xx)."""
    return api_response(status_code, body=data, headers=headers)


def created(
    data: Body,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Created response (201)."""
    return api_response(201, body=data, headers=headers)


def bad_request(error: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Bad request response (400)."""
    return api_response(400, error=error, error_type="InvalidArgument", headers=headers)


def unauthorized(
    error: str, headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Unauthorized response (401). Used when no caller identity is present."""
    return api_response(401, error=error, error_type="Unauthorized", headers=headers)


def unprocessable_entity(
    error: str, headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Unprocessable entity response (422)."""
    return api_response(422, error=error, error_type="InvalidArgument", headers=headers)


def internal_error(
    error: str = "Internal server error", headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Internal server error response (500)."""
    return api_response(500, error=error, error_type="InternalError", headers=headers)


def from_app_error(
    err: AppError, headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Maps an AppError to its status code, keeping its kind."""
    return api_response(
        err.status_code, error=err.message, error_type=err.error_code, headers=headers
    )

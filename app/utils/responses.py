"""
Unified API response helpers.

Provides consistent response format across all endpoints:
{
    "success": bool,
    "data": any | null,
    "message": str | null,
    "error": str | null
}
"""
import json
import logging
from functools import wraps
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse

from app.core.exceptions import BadRequest, TaskwiseError

logger = logging.getLogger(__name__)


def api_success(
    data: Any = None,
    message: str | None = None,
    status: int = 200,
) -> JsonResponse:
    """
    Return a successful API response.

    Args:
        data: Response payload (dict, list, or any JSON-serializable value)
        message: Optional success message
        status: HTTP status code (default 200)

    Returns:
        JsonResponse with success=True
    """
    response = {
        "success": True,
        "data": data,
        "message": message,
        "error": None,
    }
    return JsonResponse(response, status=status, encoder=DjangoJSONEncoder)


def api_error(
    error: str,
    status: int = 400,
    data: Any = None,
) -> JsonResponse:
    """
    Return an error API response.

    Args:
        error: Error message describing what went wrong
        status: HTTP status code (default 400)
        data: Optional additional error context

    Returns:
        JsonResponse with success=False
    """
    response = {
        "success": False,
        "data": data,
        "message": None,
        "error": error,
    }
    return JsonResponse(response, status=status, encoder=DjangoJSONEncoder)


def api_created(
    data: Any = None,
    message: str | None = None,
) -> JsonResponse:
    """Return 201 Created response."""
    return api_success(data=data, message=message, status=201)


def api_server_error(error: str = "Internal server error") -> JsonResponse:
    """Return 500 Internal Server Error response."""
    return api_error(error=error, status=500)


def parse_json_body(request) -> dict:
    """
    Decode a JSON object from the request body.

    Raises:
        BadRequest: body is not a JSON object
    """
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(payload, dict):
        raise BadRequest("JSON body must be an object")
    return payload


def api_view(view_func):
    """
    Map domain errors raised inside a view to the unified error response.

    TaskwiseError subclasses carry their own status code; anything else is
    logged and answered with 500.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except TaskwiseError as e:
            if e.status_code >= 500:
                logger.warning("%s %s -> %s: %s", request.method, request.path, e.status_code, e.message)
            return api_error(error=e.message, status=e.status_code)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return api_server_error()
    return _wrapped

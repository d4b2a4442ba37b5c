"""Unified response envelopes.

Every endpoint answers ``{"success": bool, ...}``. Successful payloads
carry ``data`` (and optionally ``message``, ``count`` or pagination
fields); failures carry ``message`` and, for validation failures,
``errors``.
"""

from typing import Any, List, Optional

from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    """Build a success envelope. Route handlers return it as-is."""
    body = {"success": True}
    if message:
        body["message"] = message
    body.update(extra)
    if data is not None:
        body["data"] = data
    return body


def paged_response(result: dict, message: Optional[str] = None) -> dict:
    """Envelope for manager results shaped ``{"data": ..., "count": ..., ...}``."""
    body = dict(result)
    data = body.pop("data", None)
    return success_response(data, message, **body)


def error_response(message: str, status_code: int = 400, errors: Optional[List[Any]] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def rate_limited(retry_after: int) -> JSONResponse:
    response = error_response("Too many requests, please try again later.", 429)
    response.headers["Retry-After"] = str(retry_after)
    return response

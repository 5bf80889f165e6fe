"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type, a ``problem()`` builder used by routes, and
handler callables that turn domain and framework exceptions into
application/problem+json responses.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coursesync.http import error_mapping
from coursesync.logic.errors import UnknownIdError
from coursesync.logic.repository_outline import InjectedFault, ResourceNotFound

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem(mapping: Mapping[str, Any], detail: str, status: Optional[int] = None, **extra: Any) -> JSONResponse:
    """Build a problem+json response from an ``error_mapping`` entry."""
    status_code = int(status or mapping["status"])
    body = {
        "title": mapping.get("title", "Error"),
        "status": status_code,
        "detail": detail,
        "code": mapping["code"],
        **extra,
    }
    logger.info("problem_response status=%s code=%s detail=%s", status_code, body["code"], detail)
    return JSONResponse(body, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"title": "Error", "status": status_code, "detail": str(exc.detail or "")}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(detail, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    body = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": error_mapping.REQUEST_BODY_INVALID["code"],
        "errors": [{"loc": list(e.get("loc", ())), "msg": str(e.get("msg", ""))} for e in exc.errors()],
    }
    return JSONResponse(body, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_resource_not_found(request: Request, exc: ResourceNotFound) -> JSONResponse:  # noqa: D401
    return problem(error_mapping.PARENT_NOT_FOUND, str(exc))


async def handle_unknown_id(request: Request, exc: UnknownIdError) -> JSONResponse:  # noqa: D401
    return problem(error_mapping.ORDER_MEMBERSHIP_MISMATCH, str(exc), ids=[str(i) for i in exc.ids])


async def handle_injected_fault(request: Request, exc: InjectedFault) -> JSONResponse:  # noqa: D401
    return problem(error_mapping.UPSTREAM_UNAVAILABLE, str(exc), status=exc.status)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=True)
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_resource_not_found",
    "handle_unknown_id",
    "handle_injected_fault",
    "handle_unexpected_error",
]

"""Stub sync backend application factory.

Serves the course, module, lesson and quiz endpoints the sync gateway talks
to, backed by in-memory state. Used for local development and integration
tests; it is not the production course API.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from coursesync.http.problem import (
    handle_http_exception,
    handle_injected_fault,
    handle_request_validation_error,
    handle_resource_not_found,
    handle_unexpected_error,
    handle_unknown_id,
)
from coursesync.http.request_id import RequestIdMiddleware
from coursesync.logging_setup import configure_logging
from coursesync.logic.errors import UnknownIdError
from coursesync.logic.repository_outline import InjectedFault, ResourceNotFound
from coursesync.routes import api_router
from coursesync.routes.test_support import router as test_support_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(*, include_test_support: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(title="coursesync stub backend")

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ResourceNotFound, handle_resource_not_found)
    app.add_exception_handler(UnknownIdError, handle_unknown_id)
    app.add_exception_handler(InjectedFault, handle_injected_fault)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix=API_PREFIX)
    if include_test_support:
        # Test-support routes stay outside the API prefix
        app.include_router(test_support_router)

    @app.get("/health")
    def health() -> dict:  # pragma: no cover - trivial
        return {"status": "ok"}

    logger.info("stub_backend.created prefix=%s test_support=%s", API_PREFIX, include_test_support)
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.

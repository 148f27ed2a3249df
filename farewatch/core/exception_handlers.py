"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain exceptions
(FarewatchException and subclasses) and unhandled errors to JSON responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from farewatch.core.config import get_settings
from farewatch.domain.exceptions import FarewatchException

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status when applicable
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "UNSUPPORTED_OPERATION": 409,
    "SERVICE_UNAVAILABLE": 503,
}


def _farewatch_exception_handler(request: Request, exc: FarewatchException) -> JSONResponse:
    """Return JSON from FarewatchException.to_dict() with the mapped status code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    detail: Any = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register FarewatchException and generic Exception handlers on app."""
    app.add_exception_handler(FarewatchException, _farewatch_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)

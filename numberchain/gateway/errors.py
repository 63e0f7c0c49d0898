# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Exception handlers.

Maps the exception hierarchy, framework validation errors and stray
exceptions onto the error envelope. Internal errors are logged with
their traceback and answered with a generic message.
"""

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from ..core.exceptions import InternalError, NumberChainError
from .cookies import set_auth_cookies, set_token_headers
from .responses import error_response

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _location_path(loc: Sequence[Any]) -> str:
    """
    Render a validation error location.

    Body fields use their dotted path (``root`` for the body itself),
    query and header fields are prefixed, path parameters use their name.
    """
    if not loc:
        return "root"
    source, *rest = loc
    field = ".".join(str(part) for part in rest)
    match source:
        case "body":
            return field or "root"
        case "query":
            return f"query.{field}"
        case "header":
            return f"headers.{field}"
        case "path":
            return field
    return ".".join(str(part) for part in loc)


def format_validation_errors(errors: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Group validation messages by path, keeping first-seen order."""
    grouped: dict[str, list[str]] = {}
    for error in errors:
        if error.get("type") == "json_invalid":
            path = "root"
        else:
            path = _location_path(error.get("loc", ()))
        grouped.setdefault(path, []).append(error.get("msg", "Invalid value"))
    return [{"path": path, "errors": messages} for path, messages in grouped.items()]


def _carry_rotation(request: Request, response: Response) -> Response:
    """Keep tokens rotated earlier in the request even when the route failed."""
    tokens = getattr(request.state, "rotated_tokens", None)
    if tokens is not None:
        set_token_headers(response, tokens.access_token, tokens.refresh_token)
        set_auth_cookies(
            response,
            request.app.state.settings,
            tokens.access_token,
            tokens.refresh_token,
        )
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope-producing handlers on ``app``."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc.errors())
        logger.info(f"Validation failed: {request.method} {request.url.path}")
        return _carry_rotation(request, error_response("Validation failed", 400, errors))

    @app.exception_handler(NumberChainError)
    async def app_exception_handler(request: Request, exc: NumberChainError):
        if isinstance(exc, InternalError) or exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}", extra={"details": exc.details})
            response = error_response(INTERNAL_ERROR_MESSAGE, 500)
        else:
            response = error_response(exc.message, exc.status_code)
        return _carry_rotation(request, response)

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        # The only unique constraint clients can trip is users.username
        if "username" in str(exc.orig).lower():
            return _carry_rotation(request, error_response("Username already registered", 409))
        logger.exception(f"Integrity error: {exc.orig}")
        return _carry_rotation(request, error_response(INTERNAL_ERROR_MESSAGE, 500))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        response = error_response(str(exc.detail), exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return _carry_rotation(request, response)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return _carry_rotation(request, error_response(INTERNAL_ERROR_MESSAGE, 500))


__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "format_validation_errors",
    "register_exception_handlers",
]

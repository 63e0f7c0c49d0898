# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Response envelope.

Every response body has the same shape:

    success: {"success": true,  "message": ..., "statusCode": ..., "data": ...}
    failure: {"success": false, "message": ..., "statusCode": ..., "errors": [...]}

``errors`` only appears on validation failures and lists
``{"path": ..., "errors": [...]}`` entries.
"""

from typing import Any

from fastapi.responses import JSONResponse


def success_response(data: Any, message: str, status_code: int = 200) -> dict[str, Any]:
    """Envelope for a successful result; routes return it as-is."""
    return {
        "success": True,
        "message": message,
        "statusCode": status_code,
        "data": data,
    }


def error_response(
    message: str,
    status_code: int,
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {
        "success": False,
        "message": message,
        "statusCode": status_code,
    }
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


__all__ = ["error_response", "success_response"]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Auth cookies.

Both tokens travel as HTTP-only cookies on path ``/``. Development uses
``SameSite=Lax``; production uses ``SameSite=None; Secure`` so a
frontend on another origin can send them.
"""

from starlette.responses import Response

from ..core.settings import Settings

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

# Rotation also surfaces the new tokens as headers for non-browser clients
ACCESS_TOKEN_HEADER = "x-access-token"
REFRESH_TOKEN_HEADER = "x-refresh-token"


def cookie_options(settings: Settings) -> dict:
    """Attributes shared by setting and clearing auth cookies."""
    if settings.is_production:
        return {"httponly": True, "secure": True, "samesite": "none", "path": "/"}
    return {"httponly": True, "secure": False, "samesite": "lax", "path": "/"}


def set_auth_cookies(
    response: Response,
    settings: Settings,
    access_token: str,
    refresh_token: str,
) -> None:
    """Attach both tokens as cookies, each living as long as its token."""
    options = cookie_options(settings)
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.security.access_token_max_age,
        **options,
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=settings.security.refresh_token_max_age,
        **options,
    )


def set_token_headers(response: Response, access_token: str, refresh_token: str) -> None:
    response.headers[ACCESS_TOKEN_HEADER] = access_token
    response.headers[REFRESH_TOKEN_HEADER] = refresh_token


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    """Expire both cookies with the attributes they were set with."""
    options = cookie_options(settings)
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, **options)


__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "ACCESS_TOKEN_HEADER",
    "REFRESH_TOKEN_COOKIE",
    "REFRESH_TOKEN_HEADER",
    "clear_auth_cookies",
    "cookie_options",
    "set_auth_cookies",
    "set_token_headers",
]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Authentication Routes

Endpoints for:
- User registration
- Login (sets access and refresh token cookies)
- Current user lookup
- Logout (revokes the refresh token, clears cookies)
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import UnauthorizedError, UsernameTakenError, UserNotFoundError
from ..core.settings import Settings
from ..data.database import get_db_session
from ..data.repositories import UserRepository
from ..observability.logging import audit_logger
from .auth import (
    PasswordService,
    TokenCodec,
    get_app_settings,
    get_password_service,
    get_token_codec,
)
from .cookies import REFRESH_TOKEN_COOKIE, clear_auth_cookies, set_auth_cookies
from .responses import success_response
from .session import Identity, require_identity
from .token_store import RefreshTokenLedger, get_token_ledger

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


# ============================================================
# REQUEST MODELS
# ============================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=191)
    password: str = Field(..., min_length=8, max_length=255)


class LoginRequest(BaseModel):
    """Login request."""

    username: str = Field(..., min_length=1, max_length=191)
    password: str = Field(..., min_length=8, max_length=255)


def _user_data(user) -> dict:
    return {"id": user.id, "name": user.name, "username": user.username}


# ============================================================
# ROUTES
# ============================================================


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    password_service: PasswordService = Depends(get_password_service),
):
    """Register a new user. Usernames are unique."""
    user_repo = UserRepository(session)

    if await user_repo.get_by_username(body.username):
        audit_logger.auth("register", success=False, details={"username": body.username})
        raise UsernameTakenError(body.username)

    user = await user_repo.create(
        name=body.name,
        username=body.username,
        password_hash=password_service.hash_password(body.password),
    )
    await session.commit()

    logger.info(f"User registered: {user.username} ({user.id})")
    audit_logger.auth("register", success=True, details={"user_id": user.id})

    return success_response(_user_data(user), "User registered successfully", 201)


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    password_service: PasswordService = Depends(get_password_service),
    codec: TokenCodec = Depends(get_token_codec),
    ledger: RefreshTokenLedger = Depends(get_token_ledger),
    settings: Settings = Depends(get_app_settings),
):
    """
    Login with username and password.

    Issues one refresh token ledger record and sets both token cookies.
    """
    user = await UserRepository(session).get_by_username(body.username)
    if user is None or not password_service.verify_password(body.password, user.password_hash):
        # Same answer for unknown users and wrong passwords
        audit_logger.auth("login", success=False, details={"username": body.username})
        raise UnauthorizedError("Invalid credentials")

    access_token = codec.sign_access(user.id, user.username)
    issued = await ledger.issue(user.id, user.username)
    set_auth_cookies(response, settings, access_token, issued.token)

    logger.info(f"User logged in: {user.username} ({user.id})")
    audit_logger.auth("login", success=True, details={"user_id": user.id})

    return success_response(_user_data(user), "Login successful")


@router.get("/me")
async def me(
    identity: Identity = Depends(require_identity),
    session: AsyncSession = Depends(get_db_session),
):
    """Return the authenticated user."""
    user = await UserRepository(session).get_by_id(identity.sub)
    if user is None:
        raise UserNotFoundError(identity.sub)

    return success_response(_user_data(user), "User information retrieved successfully")


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    codec: TokenCodec = Depends(get_token_codec),
    ledger: RefreshTokenLedger = Depends(get_token_ledger),
    settings: Settings = Depends(get_app_settings),
):
    """
    Logout. Always succeeds.

    Revokes the refresh token named by the cookie when it verifies, then
    clears both cookies.
    """
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    revoked = False

    if refresh_token:
        result = codec.verify_refresh(refresh_token)
        jti = result.payload.get("jti") if result.is_valid else None
        if jti:
            try:
                revoked = await ledger.revoke(jti)
            except Exception:
                logger.warning("Refresh token revoke failed during logout", exc_info=True)

    clear_auth_cookies(response, settings)
    audit_logger.auth("logout", success=True, details={"revoked": revoked})

    return success_response(None, "Logout successful")


__all__ = ["router"]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Session Middleware

Decides, per request, whether the caller is authenticated and whether
their tokens must be rotated:

    no access token ─┐
                     ├─> refresh flow ──> AUTHENTICATED (rotated) | REJECTED
    expired access ──┘
    valid access ──────────────────────> AUTHENTICATED
    invalid access ────────────────────> REJECTED

An invalid access token is rejected outright; a refresh token never
rescues a forged or tampered access token. Every failure inside the
refresh flow ends in REJECTED, never in a server error.

`SessionAuthenticator` knows nothing about HTTP. `require_identity` is
the FastAPI dependency that reads cookies and applies the outcome to the
response.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from fastapi import Depends, Request, Response

from ..core.exceptions import UnauthorizedError
from ..core.settings import Settings
from ..observability.logging import audit_logger, set_request_context
from .auth import TokenCodec, VerifyStatus, get_app_settings, get_token_codec
from .cookies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    set_auth_cookies,
    set_token_headers,
)
from .token_store import RefreshTokenLedger, TokenPair, get_token_ledger

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    """States of the per-request session machine."""

    NO_ACCESS_TOKEN = "no_access_token"
    VALID_ACCESS = "valid_access"
    EXPIRED_ACCESS = "expired_access"
    INVALID_ACCESS = "invalid_access"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller."""

    sub: int
    username: str


@dataclass(frozen=True)
class SessionOutcome:
    """
    Terminal result of one pass through the session machine.

    ``entry`` records how the access token was classified, ``tokens`` is
    set only when a rotation happened.
    """

    state: SessionState
    entry: SessionState
    identity: Identity | None = None
    tokens: TokenPair | None = None
    reason: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def rotated(self) -> bool:
        return self.tokens is not None


def identity_from_claims(claims: dict[str, Any]) -> Identity | None:
    """Build an identity from token claims, or None if they are unusable."""
    sub = claims.get("sub")
    username = claims.get("username")
    if sub is None or not isinstance(username, str):
        return None
    try:
        return Identity(sub=int(sub), username=username)
    except (TypeError, ValueError):
        return None


class SessionAuthenticator:
    """
    Session state machine over a token codec and refresh token ledger.

    Usage:
        authenticator = SessionAuthenticator(codec, ledger)
        outcome = await authenticator.authenticate(access, refresh)
        if outcome.rotated:
            ...  # hand outcome.tokens back to the client
    """

    def __init__(self, codec: TokenCodec, ledger: RefreshTokenLedger):
        self.codec = codec
        self.ledger = ledger

    async def authenticate(
        self,
        access_token: str | None,
        refresh_token: str | None,
    ) -> SessionOutcome:
        if not access_token:
            entry = SessionState.NO_ACCESS_TOKEN
        else:
            result = self.codec.verify_access(access_token)
            match result.status:
                case VerifyStatus.VALID:
                    identity = identity_from_claims(result.payload)
                    if identity is None:
                        return self._reject(
                            SessionState.VALID_ACCESS, "access token claims unusable"
                        )
                    return SessionOutcome(
                        SessionState.AUTHENTICATED, SessionState.VALID_ACCESS, identity
                    )
                case VerifyStatus.INVALID:
                    return self._reject(SessionState.INVALID_ACCESS, result.reason)
                case VerifyStatus.EXPIRED:
                    entry = SessionState.EXPIRED_ACCESS

        logger.debug(f"Session entering refresh flow from {entry}")
        try:
            return await self._refresh(entry, refresh_token)
        except UnauthorizedError as e:
            return self._reject(entry, e.message)
        except Exception as e:
            logger.warning(f"Refresh flow failed: {type(e).__name__}: {e}", exc_info=True)
            return self._reject(entry, "refresh flow error")

    async def _refresh(self, entry: SessionState, refresh_token: str | None) -> SessionOutcome:
        if not refresh_token:
            return self._reject(entry, "no refresh token")

        result = self.codec.verify_refresh(refresh_token)
        if result.status is not VerifyStatus.VALID:
            return self._reject(entry, f"refresh token {result.status}")

        jti = result.payload.get("jti")
        if not result.payload.get("sub") or not jti:
            return self._reject(entry, "refresh token missing sub or jti")

        identity = identity_from_claims(result.payload)
        if identity is None:
            return self._reject(entry, "refresh token claims unusable")

        check = await self.ledger.validate_stored(jti)
        if not check.is_active:
            return self._reject(entry, f"stored refresh token {check.status}")

        tokens = await self.ledger.rotate(jti, identity.sub, identity.username)

        audit_logger.auth("rotate", success=True, details={"user_id": identity.sub})
        return SessionOutcome(
            SessionState.AUTHENTICATED, entry, identity, tokens=tokens
        )

    def _reject(self, entry: SessionState, reason: str | None) -> SessionOutcome:
        if entry is SessionState.INVALID_ACCESS:
            logger.debug(f"Session rejected: {reason}")
        else:
            logger.warning(f"Session rejected after {entry}: {reason}")
        return SessionOutcome(SessionState.REJECTED, entry, reason=reason)


# ============================================================
# FASTAPI DEPENDENCY
# ============================================================


async def require_identity(
    request: Request,
    response: Response,
    codec: TokenCodec = Depends(get_token_codec),
    ledger: RefreshTokenLedger = Depends(get_token_ledger),
    settings: Settings = Depends(get_app_settings),
) -> Identity:
    """
    FastAPI dependency guarding a route.

    Rotated tokens are written to the response as headers and cookies;
    rejection raises UnauthorizedError (401).

    Usage:
        @router.post("/posts")
        async def create_post(identity: Identity = Depends(require_identity)):
            ...
    """
    authenticator = SessionAuthenticator(codec, ledger)
    outcome = await authenticator.authenticate(
        request.cookies.get(ACCESS_TOKEN_COOKIE),
        request.cookies.get(REFRESH_TOKEN_COOKIE),
    )

    if not outcome.authenticated:
        audit_logger.auth("session", success=False, details={"reason": outcome.reason})
        raise UnauthorizedError()

    if outcome.tokens is not None:
        # Error handlers re-apply these when the route itself fails
        request.state.rotated_tokens = outcome.tokens
        set_token_headers(response, outcome.tokens.access_token, outcome.tokens.refresh_token)
        set_auth_cookies(
            response,
            settings,
            outcome.tokens.access_token,
            outcome.tokens.refresh_token,
        )

    request.state.identity = outcome.identity
    set_request_context(user_id=str(outcome.identity.sub))
    return outcome.identity


__all__ = [
    "Identity",
    "SessionAuthenticator",
    "SessionOutcome",
    "SessionState",
    "identity_from_claims",
    "require_identity",
]

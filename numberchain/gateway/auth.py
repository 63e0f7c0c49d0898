# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Authentication Service

Provides:
- Password hashing (bcrypt)
- Access and refresh token signing with independent secrets
- Token verification as a tagged result (valid / expired / invalid)
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

import jwt
from fastapi import Request
from passlib.context import CryptContext

from ..core.settings import SecuritySettings, Settings

logger = logging.getLogger(__name__)


class TokenType(StrEnum):
    """Types of JWT tokens."""

    ACCESS = "access"
    REFRESH = "refresh"


class VerifyStatus(StrEnum):
    """Outcome of verifying a token."""

    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class VerifyResult:
    """
    Tagged verification result.

    ``payload`` is only populated for VALID results. EXPIRED means the
    signature checked out but ``exp`` has passed; everything else is
    INVALID.
    """

    status: VerifyStatus
    payload: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None

    @classmethod
    def valid(cls, payload: dict[str, Any]) -> "VerifyResult":
        return cls(VerifyStatus.VALID, payload)

    @classmethod
    def expired(cls) -> "VerifyResult":
        return cls(VerifyStatus.EXPIRED, reason="token expired")

    @classmethod
    def invalid(cls, reason: str) -> "VerifyResult":
        return cls(VerifyStatus.INVALID, reason=reason)

    @property
    def is_valid(self) -> bool:
        return self.status is VerifyStatus.VALID


# ============================================================
# PASSWORDS
# ============================================================


class PasswordService:
    """
    Password hashing and verification.

    Uses bcrypt; 12 rounds in production, tests may lower it.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash_password(self, password: str) -> str:
        """
        Hash a password for storage.

        Args:
            password: Plaintext password

        Returns:
            Bcrypt hash string
        """
        return self._context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash.

        A malformed stored hash counts as a mismatch.
        """
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False


# ============================================================
# TOKENS
# ============================================================


class TokenCodec:
    """
    Signs and verifies access and refresh tokens.

    Access and refresh tokens use different secrets and lifetimes, so a
    token of one kind never verifies as the other. The codec has no side
    effects; persistence of refresh tokens lives in the ledger.

    Usage:
        codec = TokenCodec(settings.security)

        access = codec.sign_access(user.id, user.username)
        result = codec.verify_access(access)
        if result.status is VerifyStatus.VALID:
            user_id = int(result.payload["sub"])
    """

    def __init__(self, settings: SecuritySettings):
        self.algorithm = settings.jwt_algorithm
        self._access_secret = settings.access_token_secret
        self._refresh_secret = settings.refresh_token_secret
        self.access_token_expire = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_token_expire = timedelta(days=settings.refresh_token_expire_days)

    def _encode(
        self,
        token_type: TokenType,
        secret: str,
        lifetime: timedelta,
        sub: int | str,
        username: str,
        extra: dict[str, Any] | None = None,
    ) -> str:
        now = datetime.now(UTC)
        payload = {
            # PyJWT requires a string subject
            "sub": str(sub),
            "username": username,
            "type": token_type.value,
            "iat": now,
            "exp": now + lifetime,
        }
        if extra:
            payload.update(extra)
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def sign_access(
        self,
        sub: int | str,
        username: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a short-lived access token (15 minutes by default)."""
        return self._encode(
            TokenType.ACCESS,
            self._access_secret,
            expires_delta or self.access_token_expire,
            sub,
            username,
        )

    def sign_refresh(
        self,
        sub: int | str,
        username: str,
        jti: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a long-lived refresh token (7 days by default) carrying ``jti``."""
        return self._encode(
            TokenType.REFRESH,
            self._refresh_secret,
            expires_delta or self.refresh_token_expire,
            sub,
            username,
            {"jti": jti},
        )

    def _verify(self, token: str, secret: str, expected: TokenType) -> VerifyResult:
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return VerifyResult.expired()
        except jwt.InvalidTokenError as e:
            return VerifyResult.invalid(f"{type(e).__name__}: {e}")

        if payload.get("type") != expected.value:
            return VerifyResult.invalid(f"expected {expected.value} token")

        return VerifyResult.valid(payload)

    def verify_access(self, token: str) -> VerifyResult:
        return self._verify(token, self._access_secret, TokenType.ACCESS)

    def verify_refresh(self, token: str) -> VerifyResult:
        return self._verify(token, self._refresh_secret, TokenType.REFRESH)

    def read_expiry(self, token: str) -> datetime:
        """
        Read the ``exp`` claim without verifying the signature.

        Only used on tokens this codec just signed, so the ledger stores
        the exact expiry the client will see.
        """
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=[self.algorithm],
        )
        exp = claims.get("exp")
        if exp is None:
            return datetime.now(UTC) + self.refresh_token_expire
        return datetime.fromtimestamp(exp, UTC)


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================


def get_token_codec(request: Request) -> TokenCodec:
    """FastAPI dependency returning the application's token codec."""
    return request.app.state.token_codec


def get_password_service(request: Request) -> PasswordService:
    """FastAPI dependency returning the application's password service."""
    return request.app.state.password_service


def get_app_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the application was built with."""
    return request.app.state.settings


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "PasswordService",
    "TokenCodec",
    "TokenType",
    "VerifyResult",
    "VerifyStatus",
    "get_app_settings",
    "get_password_service",
    "get_token_codec",
]

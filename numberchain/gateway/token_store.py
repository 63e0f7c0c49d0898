# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Refresh Token Ledger

Database-backed refresh token storage for:
- Issuing refresh tokens with their real expiry
- Validating a presented token against its stored record
- Rotation (revoke-and-replace, linked through ``replaced_by``)
- Revocation on logout

Records are never deleted. A record whose ``revoked_at`` is set is never
accepted again, and ``replaced_by`` is written exactly once.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ExpiredRefreshTokenError, InvalidRefreshTokenError
from ..core.lifecycle import as_utc, utcnow
from ..data.database import get_db_session
from ..data.models import RefreshTokenModel
from ..data.repositories import RefreshTokenRepository
from .auth import TokenCodec, get_token_codec

logger = logging.getLogger(__name__)


class StoredTokenStatus(StrEnum):
    """State of a refresh token's ledger record."""

    ACTIVE = "active"
    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    EXPIRED = "expired"


@dataclass(frozen=True)
class StoredTokenCheck:
    """Result of looking a jti up in the ledger."""

    status: StoredTokenStatus
    record: RefreshTokenModel | None = None

    @property
    def is_active(self) -> bool:
        return self.status is StoredTokenStatus.ACTIVE


@dataclass(frozen=True)
class IssuedRefreshToken:
    """A freshly signed refresh token and its ledger key."""

    token: str
    jti: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh tokens handed to the client after rotation."""

    access_token: str
    refresh_token: str
    refresh_jti: str


class RefreshTokenLedger:
    """
    Ledger of issued refresh tokens.

    The ledger commits its own writes: a successor token must be durable
    before the predecessor is revoked.

    Usage:
        ledger = RefreshTokenLedger(session, codec)

        issued = await ledger.issue(user.id, user.username)
        check = await ledger.validate_stored(issued.jti)
        pair = await ledger.rotate(issued.jti, user.id, user.username)
    """

    def __init__(self, session: AsyncSession, codec: TokenCodec):
        self.session = session
        self.codec = codec
        self.repo = RefreshTokenRepository(session)

    async def issue(self, user_id: int, username: str) -> IssuedRefreshToken:
        """
        Sign a refresh token and record it as active.

        Persistence failures propagate to the caller.
        """
        jti = uuid.uuid4().hex
        token = self.codec.sign_refresh(user_id, username, jti)
        expires_at = self.codec.read_expiry(token)

        await self.repo.create(jti=jti, token=token, user_id=user_id, expires_at=expires_at)
        await self.session.commit()

        logger.debug(f"Refresh token issued: {jti[:8]}... user={user_id}")
        return IssuedRefreshToken(token=token, jti=jti, expires_at=expires_at)

    async def validate_stored(self, jti: str) -> StoredTokenCheck:
        """Check a jti against its record. Read only."""
        record = await self.repo.get_by_jti(jti)
        if record is None:
            return StoredTokenCheck(StoredTokenStatus.NOT_FOUND)
        if record.revoked_at is not None:
            return StoredTokenCheck(StoredTokenStatus.REVOKED, record)
        if as_utc(record.expires_at) <= utcnow():
            return StoredTokenCheck(StoredTokenStatus.EXPIRED, record)
        return StoredTokenCheck(StoredTokenStatus.ACTIVE, record)

    async def rotate(self, old_jti: str, user_id: int, username: str) -> TokenPair:
        """
        Replace an active refresh token with a new one.

        Raises:
            InvalidRefreshTokenError: record missing, already revoked,
                owned by another user, or rotated concurrently
            ExpiredRefreshTokenError: record past its expiry
        """
        record = await self.repo.get_by_jti(old_jti)
        if record is None or record.revoked_at is not None:
            raise InvalidRefreshTokenError(old_jti)
        if record.user_id != user_id:
            logger.warning(
                f"Refresh token {old_jti[:8]}... presented for user {user_id}, "
                f"owned by {record.user_id}"
            )
            raise InvalidRefreshTokenError(old_jti)
        if as_utc(record.expires_at) <= utcnow():
            raise ExpiredRefreshTokenError(old_jti)

        issued = await self.issue(user_id, username)

        try:
            updated = await self.repo.revoke_if_active(
                old_jti, revoked_at=utcnow(), replaced_by=issued.jti
            )
            await self.session.commit()
        except SQLAlchemyError:
            # Successor is already committed; the session stays usable
            await self.session.rollback()
            logger.error(
                f"Failed to revoke rotated refresh token {old_jti[:8]}...",
                exc_info=True,
            )
        else:
            if updated == 0:
                # Another request rotated this token first
                await self.repo.revoke_if_active(issued.jti, revoked_at=utcnow())
                await self.session.commit()
                logger.warning(f"Concurrent rotation lost for {old_jti[:8]}...")
                raise InvalidRefreshTokenError(old_jti)

        access_token = self.codec.sign_access(user_id, username)
        logger.info(f"Refresh token rotated: {old_jti[:8]}... -> {issued.jti[:8]}...")
        return TokenPair(
            access_token=access_token,
            refresh_token=issued.token,
            refresh_jti=issued.jti,
        )

    async def revoke(self, jti: str) -> bool:
        """
        Revoke a record. Idempotent and never raises.

        Returns False (and writes nothing) when the record is absent or
        already revoked, and False when the write itself fails.
        """
        try:
            record = await self.repo.get_by_jti(jti)
            if record is None or record.revoked_at is not None:
                return False
            updated = await self.repo.revoke_if_active(jti, revoked_at=utcnow())
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.warning(f"Failed to revoke refresh token {jti[:8]}...", exc_info=True)
            return False

        if updated:
            logger.info(f"Refresh token revoked: {jti[:8]}...")
        return updated == 1


# ============================================================
# FASTAPI DEPENDENCY
# ============================================================


def get_token_ledger(
    session: AsyncSession = Depends(get_db_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> RefreshTokenLedger:
    """FastAPI dependency building a ledger bound to the request's session."""
    return RefreshTokenLedger(session, codec)


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "IssuedRefreshToken",
    "RefreshTokenLedger",
    "StoredTokenCheck",
    "StoredTokenStatus",
    "TokenPair",
    "get_token_ledger",
]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Exception Hierarchy

Structured exceptions for the whole service.
Every exception carries an HTTP status code and a `details` dict; the
gateway turns them into the standard error envelope.
"""

from typing import Any


class NumberChainError(Exception):
    """
    Base exception for all Number Chain errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        status_code: HTTP status the gateway responds with
    """

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ============================================================
# REQUEST ERRORS
# ============================================================


class UnauthorizedError(NumberChainError):
    """Missing, invalid or rejected credentials."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, kwargs.get("details"))


class NotFoundError(NumberChainError):
    """Referenced resource does not exist."""

    status_code = 404


class ConflictError(NumberChainError):
    """Resource already exists."""

    status_code = 409


class DomainError(NumberChainError):
    """Request is well-formed but violates a discussion rule."""

    status_code = 400


class InternalError(NumberChainError):
    """Server-side inconsistency. Never exposed verbatim to clients."""

    status_code = 500


# ============================================================
# AUTH ERRORS
# ============================================================


class UsernameTakenError(ConflictError):
    def __init__(self, username: str | None = None):
        super().__init__(
            "Username already registered",
            {"username": username} if username else None,
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int | None = None):
        super().__init__("User not found", {"user_id": user_id} if user_id else None)


class InvalidRefreshTokenError(UnauthorizedError):
    """Refresh token record is absent, revoked, or was rotated concurrently."""

    def __init__(self, jti: str | None = None):
        super().__init__("INVALID_REFRESH_TOKEN", details={"jti": jti} if jti else None)


class ExpiredRefreshTokenError(UnauthorizedError):
    """Refresh token record is past its expiry."""

    def __init__(self, jti: str | None = None):
        super().__init__("EXPIRED_REFRESH_TOKEN", details={"jti": jti} if jti else None)


# ============================================================
# DISCUSSION ERRORS
# ============================================================


class PostNotFoundError(NotFoundError):
    def __init__(self, post_id: int | None = None):
        super().__init__("Post not found", {"post_id": post_id} if post_id else None)


class ParentNodeNotFoundError(NotFoundError):
    def __init__(self, parent_id: int | None = None):
        super().__init__(
            "Parent node not found", {"parent_id": parent_id} if parent_id else None
        )


class ParentNodeMismatchError(DomainError):
    def __init__(self, parent_id: int | None = None, post_id: int | None = None):
        super().__init__(
            "Parent node does not belong to this post",
            {"parent_id": parent_id, "post_id": post_id},
        )


class CalculationError(DomainError):
    """Arithmetic failed; the message is shown to the client verbatim."""

    pass


class TreeIntegrityError(InternalError):
    """A stored node references a parent outside its post's tree."""

    def __init__(self, node_id: int, parent_id: int, post_id: int):
        super().__init__(
            f"Node {node_id} references parent {parent_id} outside post {post_id}",
            {"node_id": node_id, "parent_id": parent_id, "post_id": post_id},
        )


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "NumberChainError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "DomainError",
    "InternalError",
    "UsernameTakenError",
    "UserNotFoundError",
    "InvalidRefreshTokenError",
    "ExpiredRefreshTokenError",
    "PostNotFoundError",
    "ParentNodeNotFoundError",
    "ParentNodeMismatchError",
    "CalculationError",
    "TreeIntegrityError",
]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
HTTP gateway.

- app: FastAPI application factory
- auth: password hashing and the access/refresh token codec
- token_store: refresh token ledger
- session: per-request session state machine and route guard
"""

from .app import create_app
from .auth import PasswordService, TokenCodec, VerifyResult, VerifyStatus
from .session import Identity, SessionAuthenticator, SessionOutcome, SessionState
from .token_store import RefreshTokenLedger, StoredTokenStatus, TokenPair

__all__ = [
    "Identity",
    "PasswordService",
    "RefreshTokenLedger",
    "SessionAuthenticator",
    "SessionOutcome",
    "SessionState",
    "StoredTokenStatus",
    "TokenCodec",
    "TokenPair",
    "VerifyResult",
    "VerifyStatus",
    "create_app",
]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""Persistence layer: ORM models, database handle and repositories."""

from .database import Database, get_database, get_db_session
from .models import Base, NodeModel, PostModel, RefreshTokenModel, UserModel
from .repositories import (
    NodeRepository,
    PostRepository,
    RefreshTokenRepository,
    UserRepository,
)

__all__ = [
    "Base",
    "Database",
    "NodeModel",
    "NodeRepository",
    "PostModel",
    "PostRepository",
    "RefreshTokenModel",
    "RefreshTokenRepository",
    "UserModel",
    "UserRepository",
    "get_database",
    "get_db_session",
]

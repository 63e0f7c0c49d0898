# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
SQLAlchemy ORM models.

Maps directly to Alembic migration 001:
- users
- refresh_tokens (refresh token ledger; rows are never deleted)
- posts
- nodes (reply tree, parent pointers)

Numbers are double precision so NaN and Infinity results survive a
round trip.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Double,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

from ..core.lifecycle import utcnow


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    username: Mapped[str] = mapped_column(String(191), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    refresh_tokens = relationship("RefreshTokenModel", back_populates="user")

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.id})>"


class RefreshTokenModel(Base):
    __tablename__ = "refresh_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    jti: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    token: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    replaced_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    user = relationship("UserModel", back_populates="refresh_tokens")

    __table_args__ = (Index("idx_refresh_tokens_user", "user_id"),)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def __repr__(self) -> str:
        state = "revoked" if self.is_revoked else "active"
        return f"<RefreshToken {self.jti[:8]}... user={self.user_id} {state}>"


class PostModel(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    initial_number: Mapped[float] = mapped_column(Double, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    user = relationship("UserModel")
    nodes = relationship("NodeModel", back_populates="post", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_posts_created", "created_at"),)

    def __repr__(self) -> str:
        return f"<Post {self.id} start={self.initial_number}>"


class NodeModel(Base):
    __tablename__ = "nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("nodes.id", ondelete="CASCADE"), nullable=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    operation: Mapped[str] = mapped_column(String(1), nullable=False)
    operand_value: Mapped[float] = mapped_column(Double, nullable=False)
    # SQLite stores NaN as NULL; readers map NULL back to NaN
    result_value: Mapped[float | None] = mapped_column(Double, nullable=True)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    post = relationship("PostModel", back_populates="nodes")

    __table_args__ = (
        CheckConstraint("operation IN ('+', '-', '*', '/', '^')", name="ck_nodes_operation"),
        Index("idx_nodes_post_created", "post_id", "created_at"),
        Index("idx_nodes_parent", "parent_id"),
    )

    def __repr__(self) -> str:
        return f"<Node {self.id} post={self.post_id} {self.operation}{self.operand_value}>"


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Base",
    "UserModel",
    "RefreshTokenModel",
    "PostModel",
    "NodeModel",
]

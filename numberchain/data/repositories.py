# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Repository pattern for CRUD operations.

Every repository is constructed with an AsyncSession and provides
typed query methods. Repositories flush but never commit; the caller
owns the transaction.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import NodeModel, PostModel, RefreshTokenModel, UserModel

# ---------------------------------------------------------------------------
# UserRepository
# ---------------------------------------------------------------------------


class UserRepository:
    """CRUD for the users table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, username: str, password_hash: str) -> UserModel:
        user = UserModel(name=name, username=username, password_hash=password_hash)
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: int) -> UserModel | None:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# RefreshTokenRepository
# ---------------------------------------------------------------------------


class RefreshTokenRepository:
    """Persistence for refresh token ledger records. Rows are never deleted."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        jti: str,
        token: str,
        user_id: int,
        expires_at: datetime,
    ) -> RefreshTokenModel:
        record = RefreshTokenModel(
            jti=jti,
            token=token,
            user_id=user_id,
            expires_at=expires_at,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def get_by_jti(self, jti: str) -> RefreshTokenModel | None:
        # Another request may have revoked the row since it was loaded
        result = await self.session.execute(
            select(RefreshTokenModel)
            .where(RefreshTokenModel.jti == jti)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def revoke_if_active(
        self,
        jti: str,
        revoked_at: datetime,
        replaced_by: str | None = None,
    ) -> int:
        """
        Conditionally revoke a record.

        Only touches the row while ``revoked_at`` is still NULL, so two
        concurrent callers can never both succeed. Returns the number of
        rows updated (0 or 1).
        """
        values: dict = {"revoked_at": revoked_at}
        if replaced_by is not None:
            values["replaced_by"] = replaced_by

        result = await self.session.execute(
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.jti == jti,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(**values)
        )
        return result.rowcount

    async def list_for_user(self, user_id: int) -> Sequence[RefreshTokenModel]:
        result = await self.session.execute(
            select(RefreshTokenModel)
            .where(RefreshTokenModel.user_id == user_id)
            .order_by(RefreshTokenModel.created_at, RefreshTokenModel.id)
        )
        return result.scalars().all()


# ---------------------------------------------------------------------------
# PostRepository
# ---------------------------------------------------------------------------


def _nodes_count_subquery():
    return (
        select(NodeModel.post_id, func.count(NodeModel.id).label("nodes_count"))
        .group_by(NodeModel.post_id)
        .subquery()
    )


class PostRepository:
    """CRUD for the posts table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user_id: int, initial_number: float) -> PostModel:
        post = PostModel(user_id=user_id, initial_number=initial_number)
        self.session.add(post)
        await self.session.flush()
        return post

    async def get_by_id(self, post_id: int) -> PostModel | None:
        result = await self.session.execute(select(PostModel).where(PostModel.id == post_id))
        return result.scalar_one_or_none()

    async def get_with_owner(self, post_id: int) -> tuple[PostModel, str] | None:
        """Return ``(post, owner_username)`` or None."""
        result = await self.session.execute(
            select(PostModel, UserModel.username)
            .join(UserModel, UserModel.id == PostModel.user_id)
            .where(PostModel.id == post_id)
        )
        row = result.one_or_none()
        return (row[0], row[1]) if row else None

    async def get_summary(self, post_id: int) -> tuple[PostModel, str, int] | None:
        """Return ``(post, owner_username, nodes_count)`` or None."""
        counts = _nodes_count_subquery()
        result = await self.session.execute(
            select(PostModel, UserModel.username, func.coalesce(counts.c.nodes_count, 0))
            .join(UserModel, UserModel.id == PostModel.user_id)
            .outerjoin(counts, counts.c.post_id == PostModel.id)
            .where(PostModel.id == post_id)
        )
        row = result.one_or_none()
        return (row[0], row[1], row[2]) if row else None

    async def list_page(self, offset: int, limit: int) -> list[tuple[PostModel, str, int]]:
        """Newest first, with owner username and reply count."""
        counts = _nodes_count_subquery()
        result = await self.session.execute(
            select(PostModel, UserModel.username, func.coalesce(counts.c.nodes_count, 0))
            .join(UserModel, UserModel.id == PostModel.user_id)
            .outerjoin(counts, counts.c.post_id == PostModel.id)
            .order_by(PostModel.created_at.desc(), PostModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(PostModel.id)))
        return result.scalar_one()


# ---------------------------------------------------------------------------
# NodeRepository
# ---------------------------------------------------------------------------


class NodeRepository:
    """CRUD for reply nodes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        post_id: int,
        parent_id: int | None,
        user_id: int,
        operation: str,
        operand_value: float,
        result_value: float,
        depth: int,
    ) -> NodeModel:
        node = NodeModel(
            post_id=post_id,
            parent_id=parent_id,
            user_id=user_id,
            operation=operation,
            operand_value=operand_value,
            result_value=result_value,
            depth=depth,
        )
        self.session.add(node)
        await self.session.flush()
        return node

    async def get_by_id(self, node_id: int) -> NodeModel | None:
        result = await self.session.execute(select(NodeModel).where(NodeModel.id == node_id))
        return result.scalar_one_or_none()

    async def list_for_post(self, post_id: int) -> list[tuple[NodeModel, str]]:
        """All nodes of a post with their author's username, oldest first."""
        result = await self.session.execute(
            select(NodeModel, UserModel.username)
            .join(UserModel, UserModel.id == NodeModel.user_id)
            .where(NodeModel.post_id == post_id)
            .order_by(NodeModel.created_at, NodeModel.id)
        )
        return [(row[0], row[1]) for row in result.all()]


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "UserRepository",
    "RefreshTokenRepository",
    "PostRepository",
    "NodeRepository",
]

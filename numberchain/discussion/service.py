# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Discussion Service

Orchestrates posts and replies:
- Creating posts
- Replying to a post or to any reply (validated, then calculated, then stored)
- Nested tree and flat discussion views
- Paginated post listing
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import (
    ParentNodeMismatchError,
    ParentNodeNotFoundError,
    PostNotFoundError,
    UserNotFoundError,
)
from ..core.lifecycle import as_utc
from ..data.database import get_db_session
from ..data.models import NodeModel, PostModel
from ..data.repositories import NodeRepository, PostRepository, UserRepository
from .calculator import calculate
from .tree import (
    NodeRecord,
    PostView,
    TreeNode,
    build_tree,
    json_number,
    node_view,
    stored_result,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostSummary:
    """A post with its owner and reply count."""

    id: int
    user_id: int
    username: str
    initial_number: float
    created_at: datetime
    nodes_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "initial_number": json_number(self.initial_number),
            "created_at": as_utc(self.created_at).isoformat() if self.created_at else None,
            "nodes_count": self.nodes_count,
        }


@dataclass(frozen=True)
class PostPage:
    """One page of posts, newest first."""

    posts: list[PostSummary]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "posts": [post.to_dict() for post in self.posts],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "total_pages": self.total_pages,
            },
        }


def _node_record(node: NodeModel, username: str) -> NodeRecord:
    return NodeRecord(
        id=node.id,
        post_id=node.post_id,
        parent_id=node.parent_id,
        user_id=node.user_id,
        username=username,
        operation=node.operation,
        operand_value=node.operand_value,
        result_value=stored_result(node.result_value),
        depth=node.depth,
        created_at=node.created_at,
    )


def _post_summary(post: PostModel, username: str, nodes_count: int = 0) -> PostSummary:
    return PostSummary(
        id=post.id,
        user_id=post.user_id,
        username=username,
        initial_number=post.initial_number,
        created_at=post.created_at,
        nodes_count=nodes_count,
    )


class DiscussionService:
    """
    Posts and reply trees.

    Usage:
        service = DiscussionService(session)
        post = await service.create_post(user_id, 6)
        node = await service.reply_to_node(user_id, post.id, None, "+", 10)
        tree = await service.get_post_tree(post.id)
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.posts = PostRepository(session)
        self.nodes = NodeRepository(session)

    async def create_post(self, user_id: int, initial_number: float) -> PostSummary:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        post = await self.posts.create(user_id=user_id, initial_number=initial_number)
        await self.session.commit()

        logger.info(f"Post created: {post.id} by user {user_id}")
        return _post_summary(post, user.username)

    async def reply_to_node(
        self,
        user_id: int,
        post_id: int,
        parent_id: int | None,
        operation: str,
        operand: float,
    ) -> TreeNode:
        """
        Reply to the post itself (``parent_id`` None) or to one of its nodes.

        Raises:
            PostNotFoundError: no such post
            ParentNodeNotFoundError: ``parent_id`` given but unknown
            ParentNodeMismatchError: parent belongs to another post
            CalculationError: the arithmetic was refused; nothing is stored
        """
        post = await self.posts.get_by_id(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        if parent_id is None:
            parent_value = post.initial_number
            depth = 0
        else:
            parent = await self.nodes.get_by_id(parent_id)
            if parent is None:
                raise ParentNodeNotFoundError(parent_id)
            if parent.post_id != post_id:
                raise ParentNodeMismatchError(parent_id, post_id)
            parent_value = stored_result(parent.result_value)
            depth = parent.depth + 1

        result = calculate(parent_value, operation, operand)

        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        node = await self.nodes.create(
            post_id=post_id,
            parent_id=parent_id,
            user_id=user_id,
            operation=operation,
            operand_value=operand,
            result_value=result,
            depth=depth,
        )
        await self.session.commit()

        logger.info(f"Reply {node.id} on post {post_id}: {operation} {operand} -> {result}")
        return node_view(_node_record(node, user.username))

    async def get_post_tree(self, post_id: int) -> TreeNode:
        found = await self.posts.get_with_owner(post_id)
        if found is None:
            raise PostNotFoundError(post_id)
        post, username = found

        view = PostView(
            id=post.id,
            user_id=post.user_id,
            username=username,
            initial_number=post.initial_number,
            created_at=post.created_at,
        )
        rows = await self.nodes.list_for_post(post_id)
        return build_tree(view, [_node_record(node, name) for node, name in rows])

    async def get_flat_discussion(self, post_id: int) -> list[NodeRecord]:
        """All replies of a post, oldest first."""
        if await self.posts.get_by_id(post_id) is None:
            raise PostNotFoundError(post_id)
        rows = await self.nodes.list_for_post(post_id)
        return [_node_record(node, name) for node, name in rows]

    async def list_posts(self, page: int = 1, limit: int = 10) -> PostPage:
        rows = await self.posts.list_page(offset=(page - 1) * limit, limit=limit)
        total = await self.posts.count()
        return PostPage(
            posts=[_post_summary(post, username, count) for post, username, count in rows],
            page=page,
            limit=limit,
            total=total,
        )

    async def get_post(self, post_id: int) -> PostSummary:
        found = await self.posts.get_summary(post_id)
        if found is None:
            raise PostNotFoundError(post_id)
        post, username, count = found
        return _post_summary(post, username, count)


def get_discussion_service(
    session: AsyncSession = Depends(get_db_session),
) -> DiscussionService:
    """FastAPI dependency building a service bound to the request's session."""
    return DiscussionService(session)


__all__ = [
    "DiscussionService",
    "PostPage",
    "PostSummary",
    "get_discussion_service",
]

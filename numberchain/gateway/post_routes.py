# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Post Routes

Endpoints for:
- Listing posts (paginated, newest first) and reading one post
- Creating a post (authenticated)
- Replying to a post or reply (authenticated)
- Nested tree and flat discussion views
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ..discussion.calculator import Operation
from ..discussion.service import DiscussionService, get_discussion_service
from ..observability.logging import audit_logger
from .responses import success_response
from .session import Identity, require_identity

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/posts", tags=["Posts"])


# ============================================================
# REQUEST MODELS
# ============================================================


class CreatePostRequest(BaseModel):
    """Start a new chain from a number."""

    model_config = ConfigDict(populate_by_name=True)

    initial_number: float = Field(..., alias="initialNumber", allow_inf_nan=False)


class ReplyRequest(BaseModel):
    """Apply an operation to the post (``parentId`` null) or to a reply."""

    model_config = ConfigDict(populate_by_name=True)

    parent_id: int | None = Field(..., alias="parentId")
    operation: Operation
    operand_value: float = Field(..., alias="operandValue", allow_inf_nan=False)


PostId = Annotated[int, Path(ge=1, description="Post ID")]


# ============================================================
# ROUTES
# ============================================================


@router.get("")
async def list_posts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: DiscussionService = Depends(get_discussion_service),
):
    """List posts, newest first."""
    result = await service.list_posts(page=page, limit=limit)
    return success_response(result.to_dict(), "Posts retrieved successfully")


@router.get("/{post_id}")
async def get_post(
    post_id: PostId,
    service: DiscussionService = Depends(get_discussion_service),
):
    post = await service.get_post(post_id)
    return success_response(post.to_dict(), "Post retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    body: CreatePostRequest,
    identity: Identity = Depends(require_identity),
    service: DiscussionService = Depends(get_discussion_service),
):
    post = await service.create_post(identity.sub, body.initial_number)
    audit_logger.create("post", str(post.id))
    return success_response({"postId": post.id}, "Post created successfully", 201)


@router.post("/{post_id}/reply", status_code=status.HTTP_201_CREATED)
async def reply(
    body: ReplyRequest,
    post_id: PostId,
    identity: Identity = Depends(require_identity),
    service: DiscussionService = Depends(get_discussion_service),
):
    """
    Reply to a post or to one of its replies.

    The new value is computed from the parent's value; nothing is stored
    when the calculation is refused.
    """
    node = await service.reply_to_node(
        identity.sub,
        post_id,
        body.parent_id,
        body.operation.value,
        body.operand_value,
    )
    audit_logger.create("node", str(node.id), {"post_id": post_id})
    return success_response(node.to_dict(), "Reply created successfully", 201)


@router.get("/{post_id}/tree")
async def get_tree(
    post_id: PostId,
    service: DiscussionService = Depends(get_discussion_service),
):
    tree = await service.get_post_tree(post_id)
    return success_response(tree.to_dict(), "Post tree retrieved successfully")


@router.get("/{post_id}/flat")
async def get_flat(
    post_id: PostId,
    service: DiscussionService = Depends(get_discussion_service),
):
    nodes = await service.get_flat_discussion(post_id)
    return success_response(
        [node.to_flat_dict() for node in nodes], "Discussion retrieved successfully"
    )


__all__ = ["router"]

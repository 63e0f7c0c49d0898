# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Discussion tree views.

`build_tree` turns a post and its flat, parent-pointer node list into a
nested tree in two passes:

1. build an id-indexed arena holding one `TreeNode` per stored node
2. link every node into its parent's ``children`` (the post root when
   ``parent_id`` is null), in creation order

A node whose parent is not part of the same post is a data integrity
fault and raises `TreeIntegrityError`; it is never dropped.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.exceptions import TreeIntegrityError
from ..core.lifecycle import as_utc


def json_number(value: float | None) -> float | None:
    """JSON has no NaN or Infinity; those serialize as null."""
    if value is None or not math.isfinite(value):
        return None
    return value


def stored_result(value: float | None) -> float:
    """Results read back as NULL were NaN when written."""
    return math.nan if value is None else value


def _isoformat(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value else None


@dataclass(frozen=True)
class PostView:
    """A post as the tree root sees it."""

    id: int
    user_id: int
    username: str
    initial_number: float
    created_at: datetime


@dataclass(frozen=True)
class NodeRecord:
    """One stored reply, joined with its author's username."""

    id: int
    post_id: int
    parent_id: int | None
    user_id: int
    username: str
    operation: str
    operand_value: float
    result_value: float
    depth: int
    created_at: datetime

    def to_flat_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "post_id": self.post_id,
            "parent_id": self.parent_id,
            "user_id": self.user_id,
            "username": self.username,
            "operation": self.operation,
            "operand_value": json_number(self.operand_value),
            "result_value": json_number(self.result_value),
            "depth": self.depth,
            "created_at": _isoformat(self.created_at),
        }


@dataclass
class TreeNode:
    """
    A node of the nested tree view.

    The root carries the post id and its initial number with no
    operation or operand.
    """

    id: int
    value: float
    user_id: int
    username: str
    created_at: datetime | None = None
    operation: str | None = None
    operand: float | None = None
    children: list["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "operand": json_number(self.operand),
            "value": json_number(self.value),
            "user_id": self.user_id,
            "username": self.username,
            "created_at": _isoformat(self.created_at),
            "children": [child.to_dict() for child in self.children],
        }


def node_view(record: NodeRecord) -> TreeNode:
    return TreeNode(
        id=record.id,
        value=record.result_value,
        user_id=record.user_id,
        username=record.username,
        created_at=record.created_at,
        operation=record.operation,
        operand=record.operand_value,
    )


def build_tree(post: PostView, nodes: Iterable[NodeRecord]) -> TreeNode:
    """
    Nest ``nodes`` under ``post``.

    ``nodes`` must be ordered by creation time (ties by id); sibling
    order in the result follows it.
    """
    root = TreeNode(
        id=post.id,
        value=post.initial_number,
        user_id=post.user_id,
        username=post.username,
        created_at=post.created_at,
    )

    # Pass 1: arena
    ordered = list(nodes)
    arena: dict[int, TreeNode] = {}
    for record in ordered:
        if record.post_id != post.id:
            raise TreeIntegrityError(record.id, record.parent_id or 0, post.id)
        arena[record.id] = node_view(record)

    # Pass 2: link
    for record in ordered:
        if record.parent_id is None:
            root.children.append(arena[record.id])
            continue
        parent = arena.get(record.parent_id)
        if parent is None:
            raise TreeIntegrityError(record.id, record.parent_id, post.id)
        parent.children.append(arena[record.id])

    return root


__all__ = [
    "NodeRecord",
    "PostView",
    "TreeNode",
    "build_tree",
    "json_number",
    "node_view",
    "stored_result",
]

# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""Discussion engine: reply arithmetic, tree views and the discussion service."""

from .calculator import Operation, calculate
from .service import DiscussionService, PostPage, PostSummary
from .tree import NodeRecord, PostView, TreeNode, build_tree

__all__ = [
    "DiscussionService",
    "NodeRecord",
    "Operation",
    "PostPage",
    "PostSummary",
    "PostView",
    "TreeNode",
    "build_tree",
    "calculate",
]

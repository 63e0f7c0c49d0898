# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tests for the discussion tree builder.

Tests: nesting, sibling order, empty posts, integrity faults,
       JSON rendering of non-finite numbers.
"""

import math
from datetime import UTC, datetime, timedelta

import pytest

from numberchain.core.exceptions import TreeIntegrityError
from numberchain.discussion.tree import (
    NodeRecord,
    PostView,
    build_tree,
    json_number,
    stored_result,
)

T0 = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


# ============================================================
# Helpers
# ============================================================


def _post(post_id=1, initial=6.0):
    return PostView(id=post_id, user_id=1, username="alice", initial_number=initial, created_at=T0)


def _node(node_id, parent_id, result, post_id=1, operation="+", operand=1.0, depth=0):
    return NodeRecord(
        id=node_id,
        post_id=post_id,
        parent_id=parent_id,
        user_id=2,
        username="bob",
        operation=operation,
        operand_value=operand,
        result_value=result,
        depth=depth,
        created_at=T0 + timedelta(seconds=node_id),
    )


# ============================================================
# build_tree
# ============================================================


class TestBuildTree:

    def test_root_is_the_post(self):
        root = build_tree(_post(initial=6), [])
        assert root.id == 1
        assert root.value == 6
        assert root.operation is None
        assert root.operand is None
        assert root.username == "alice"
        assert root.children == []

    def test_child_nests_under_parent_not_root(self):
        a = _node(10, None, 16, operand=10)
        b = _node(11, 10, 32, operation="*", operand=2, depth=1)

        root = build_tree(_post(), [a, b])

        assert [c.id for c in root.children] == [10]
        node_a = root.children[0]
        assert node_a.value == 16
        assert [c.id for c in node_a.children] == [11]
        assert node_a.children[0].value == 32
        assert node_a.children[0].operation == "*"

    def test_siblings_keep_creation_order(self):
        nodes = [
            _node(1, None, 7),
            _node(2, None, 8),
            _node(3, 1, 9, depth=1),
            _node(4, 1, 10, depth=1),
        ]

        root = build_tree(_post(), nodes)

        assert [c.id for c in root.children] == [1, 2]
        assert [c.id for c in root.children[0].children] == [3, 4]
        assert root.children[1].children == []

    def test_parent_from_another_post_raises(self):
        with pytest.raises(TreeIntegrityError):
            build_tree(_post(post_id=1), [_node(1, 99, 7)])

    def test_node_of_another_post_raises(self):
        with pytest.raises(TreeIntegrityError):
            build_tree(_post(post_id=1), [_node(1, None, 7, post_id=2)])

    def test_to_dict_shape(self):
        root = build_tree(_post(), [_node(5, None, 16, operand=10)])
        data = root.to_dict()

        assert set(data) == {
            "id",
            "operation",
            "operand",
            "value",
            "user_id",
            "username",
            "created_at",
            "children",
        }
        child = data["children"][0]
        assert child["operation"] == "+"
        assert child["operand"] == 10
        assert child["value"] == 16
        assert child["children"] == []

    def test_non_finite_values_render_as_null(self):
        root = build_tree(_post(), [_node(1, None, math.inf), _node(2, None, math.nan)])
        data = root.to_dict()
        assert data["children"][0]["value"] is None
        assert data["children"][1]["value"] is None


class TestNumberHelpers:

    def test_json_number(self):
        assert json_number(1.5) == 1.5
        assert json_number(None) is None
        assert json_number(math.inf) is None
        assert json_number(-math.inf) is None
        assert json_number(math.nan) is None

    def test_stored_result_null_is_nan(self):
        assert math.isnan(stored_result(None))
        assert stored_result(3.0) == 3.0

    def test_flat_dict(self):
        record = _node(3, 1, 9, depth=1)
        data = record.to_flat_dict()
        assert data["parent_id"] == 1
        assert data["operand_value"] == 1.0
        assert data["result_value"] == 9
        assert data["depth"] == 1
        assert data["created_at"].startswith("2026-10-18T12:00:03")

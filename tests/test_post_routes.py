# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tests for the post endpoints over HTTP.

Verifies:
- Posting and replying require a session
- Replies compute from their parent and nest in the tree view
- Refused calculations and bad parents answer 400 without writing
- Expired access tokens are rotated transparently
- Validation failures use the error envelope
"""

from datetime import timedelta
from unittest.mock import patch

import httpx
import pytest

from numberchain.data.repositories import RefreshTokenRepository
from numberchain.discussion.service import DiscussionService
from numberchain.gateway.cookies import (
    ACCESS_TOKEN_COOKIE,
    ACCESS_TOKEN_HEADER,
    REFRESH_TOKEN_COOKIE,
    REFRESH_TOKEN_HEADER,
)

from conftest import API, ledger_snapshot, set_cookie


async def _create_post(client, initial_number=6):
    response = await client.post(f"{API}/posts", json={"initialNumber": initial_number})
    assert response.status_code == 201
    return response.json()["data"]["postId"]


async def _reply(client, post_id, operation, operand, parent_id=None):
    return await client.post(
        f"{API}/posts/{post_id}/reply",
        json={"parentId": parent_id, "operation": operation, "operandValue": operand},
    )


def _expire_access_token(client, codec, user_id):
    """Swap the access cookie for an expired one, keeping the refresh cookie."""
    refresh_token = client.cookies[REFRESH_TOKEN_COOKIE]
    client.cookies.clear()
    expired = codec.sign_access(user_id, "alice", expires_delta=timedelta(seconds=-1))
    set_cookie(client, ACCESS_TOKEN_COOKIE, expired)
    set_cookie(client, REFRESH_TOKEN_COOKIE, refresh_token)
    return refresh_token


# ============================================================
# Creating posts
# ============================================================


class TestCreatePost:

    async def test_create_post(self, client, logged_in):
        response = await client.post(f"{API}/posts", json={"initialNumber": 6})

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Post created successfully"
        assert body["statusCode"] == 201
        assert isinstance(body["data"]["postId"], int)

    async def test_requires_session(self, client):
        response = await client.post(f"{API}/posts", json={"initialNumber": 6})

        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized"

    async def test_missing_initial_number(self, client, logged_in):
        response = await client.post(f"{API}/posts", json={})

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == "initialNumber"

    async def test_non_numeric_initial_number(self, client, logged_in):
        response = await client.post(f"{API}/posts", json={"initialNumber": "six"})

        assert response.status_code == 400

    async def test_nan_initial_number(self, client, logged_in):
        response = await client.post(
            f"{API}/posts",
            content=b'{"initialNumber": NaN}',
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400


# ============================================================
# Replying
# ============================================================


class TestReply:

    async def test_reply_to_post(self, client, logged_in):
        post_id = await _create_post(client, 6)

        response = await _reply(client, post_id, "+", 10)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Reply created successfully"
        assert body["data"]["value"] == 16
        assert body["data"]["operation"] == "+"
        assert body["data"]["operand"] == 10
        assert body["data"]["username"] == "alice"
        assert body["data"]["children"] == []

        flat = (await client.get(f"{API}/posts/{post_id}/flat")).json()["data"]
        assert flat[0]["depth"] == 0
        assert flat[0]["parent_id"] is None

    async def test_nested_reply(self, client, logged_in):
        post_id = await _create_post(client, 6)
        a = (await _reply(client, post_id, "+", 10)).json()["data"]

        response = await _reply(client, post_id, "*", 2, parent_id=a["id"])

        assert response.status_code == 201
        assert response.json()["data"]["value"] == 32

        tree = (await client.get(f"{API}/posts/{post_id}/tree")).json()["data"]
        assert tree["value"] == 6
        assert tree["children"][0]["id"] == a["id"]
        assert tree["children"][0]["children"][0]["value"] == 32

    async def test_division_by_zero(self, client, logged_in):
        post_id = await _create_post(client)

        response = await _reply(client, post_id, "/", 0)

        assert response.status_code == 400
        assert response.json()["message"] == "Division by zero is not allowed"
        assert "errors" not in response.json()
        flat = (await client.get(f"{API}/posts/{post_id}/flat")).json()["data"]
        assert flat == []

    async def test_unsupported_operation(self, client, logged_in):
        post_id = await _create_post(client)

        response = await _reply(client, post_id, "%", 2)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["path"] == "operation"

    async def test_missing_parent_id(self, client, logged_in):
        post_id = await _create_post(client)

        response = await client.post(
            f"{API}/posts/{post_id}/reply",
            json={"operation": "+", "operandValue": 1},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == "parentId"
        flat = (await client.get(f"{API}/posts/{post_id}/flat")).json()["data"]
        assert flat == []

    async def test_parent_from_another_post(self, client, logged_in):
        first = await _create_post(client, 1)
        second = await _create_post(client, 2)
        node = (await _reply(client, first, "+", 1)).json()["data"]

        response = await _reply(client, second, "+", 1, parent_id=node["id"])

        assert response.status_code == 400
        assert response.json()["message"] == "Parent node does not belong to this post"

    async def test_unknown_parent(self, client, logged_in):
        post_id = await _create_post(client)

        response = await _reply(client, post_id, "+", 1, parent_id=999)

        assert response.status_code == 404
        assert response.json()["message"] == "Parent node not found"

    async def test_unknown_post(self, client, logged_in):
        response = await _reply(client, 999, "+", 1)

        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"

    async def test_overflow_serializes_as_null(self, client, logged_in):
        post_id = await _create_post(client, 10)

        response = await _reply(client, post_id, "^", 400)

        assert response.status_code == 201
        assert response.json()["data"]["value"] is None

    async def test_requires_session(self, client):
        response = await _reply(client, 1, "+", 1)
        assert response.status_code == 401


# ============================================================
# Token rotation through guarded routes
# ============================================================


class TestRotation:

    async def test_expired_access_token_is_rotated(self, app, client, codec, logged_in):
        old_refresh = _expire_access_token(client, codec, logged_in)

        response = await client.post(f"{API}/posts", json={"initialNumber": 6})

        assert response.status_code == 201
        new_access = response.headers[ACCESS_TOKEN_HEADER]
        new_refresh = response.headers[REFRESH_TOKEN_HEADER]
        assert codec.verify_access(new_access).is_valid
        assert new_refresh != old_refresh
        assert client.cookies[REFRESH_TOKEN_COOKIE] == new_refresh

        async with app.state.database.session() as session:
            records = await RefreshTokenRepository(session).list_for_user(logged_in)
        by_token = {record.token: record for record in records}
        assert by_token[old_refresh].revoked_at is not None
        assert by_token[old_refresh].replaced_by == by_token[new_refresh].jti
        assert by_token[new_refresh].revoked_at is None

    async def test_rotated_session_keeps_working(self, client, codec, logged_in):
        _expire_access_token(client, codec, logged_in)
        await client.post(f"{API}/posts", json={"initialNumber": 6})

        response = await client.get(f"{API}/auth/me")

        assert response.status_code == 200
        assert ACCESS_TOKEN_HEADER not in response.headers

    async def test_replayed_refresh_token_is_rejected(self, app, client, codec, logged_in):
        old_refresh = _expire_access_token(client, codec, logged_in)
        await client.post(f"{API}/posts", json={"initialNumber": 6})
        before = await ledger_snapshot(app.state.database, logged_in)

        client.cookies.clear()
        set_cookie(client, REFRESH_TOKEN_COOKIE, old_refresh)
        response = await client.post(f"{API}/posts", json={"initialNumber": 6})

        assert response.status_code == 401
        assert REFRESH_TOKEN_HEADER not in response.headers
        assert await ledger_snapshot(app.state.database, logged_in) == before

    async def test_rotation_survives_failing_route(self, client, codec, logged_in):
        _expire_access_token(client, codec, logged_in)

        response = await _reply(client, 999, "+", 1)

        assert response.status_code == 404
        assert ACCESS_TOKEN_HEADER in response.headers
        assert client.cookies[REFRESH_TOKEN_COOKIE] == response.headers[REFRESH_TOKEN_HEADER]

    async def test_rotation_survives_unexpected_error(self, app, client, codec, logged_in):
        _expire_access_token(client, codec, logged_in)
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(
            transport=transport, base_url="http://testserver", cookies=client.cookies
        ) as c:
            with patch.object(DiscussionService, "create_post", side_effect=RuntimeError("boom")):
                response = await c.post(f"{API}/posts", json={"initialNumber": 6})

            assert response.status_code == 500
            assert ACCESS_TOKEN_HEADER in response.headers
            assert c.cookies[REFRESH_TOKEN_COOKIE] == response.headers[REFRESH_TOKEN_HEADER]

            follow_up = await c.get(f"{API}/auth/me")

        assert follow_up.status_code == 200
        assert ACCESS_TOKEN_HEADER not in follow_up.headers


# ============================================================
# Reading
# ============================================================


class TestRead:

    async def test_list_posts_newest_first(self, client, logged_in):
        ids = [await _create_post(client, n) for n in range(3)]

        response = await client.get(f"{API}/posts", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        data = response.json()["data"]
        assert [post["id"] for post in data["posts"]] == [ids[2], ids[1]]
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    async def test_list_posts_is_public(self, client):
        response = await client.get(f"{API}/posts")

        assert response.status_code == 200
        assert response.json()["data"]["posts"] == []

    @pytest.mark.parametrize(
        "params, path",
        [({"limit": 101}, "query.limit"), ({"page": 0}, "query.page")],
    )
    async def test_pagination_bounds(self, client, params, path):
        response = await client.get(f"{API}/posts", params=params)

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == path

    async def test_get_post(self, client, logged_in):
        post_id = await _create_post(client, 6)
        await _reply(client, post_id, "+", 1)

        response = await client.get(f"{API}/posts/{post_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["initial_number"] == 6
        assert data["username"] == "alice"
        assert data["nodes_count"] == 1

    @pytest.mark.parametrize("suffix", ["", "/tree", "/flat"])
    async def test_unknown_post(self, client, suffix):
        response = await client.get(f"{API}/posts/999{suffix}")

        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"

    @pytest.mark.parametrize("post_id", ["abc", "0"])
    async def test_invalid_post_id(self, client, post_id):
        response = await client.get(f"{API}/posts/{post_id}/tree")

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == "post_id"

    async def test_tree_of_empty_post_is_public(self, client, logged_in):
        post_id = await _create_post(client, 6)
        client.cookies.clear()

        response = await client.get(f"{API}/posts/{post_id}/tree")

        assert response.status_code == 200
        assert response.json()["data"]["children"] == []


# ============================================================
# Service surface
# ============================================================


class TestServiceSurface:

    async def test_health(self, client):
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["data"] == {"status": "ok"}

    async def test_readiness(self, client):
        response = await client.get(f"{API}/health/ready")

        assert response.status_code == 200
        assert response.json()["data"]["checks"]["database"]["status"] == "healthy"

    async def test_root(self, client, settings):
        response = await client.get("/")

        assert response.json()["name"] == settings.app_name

    async def test_request_id_is_echoed(self, client):
        response = await client.get(f"{API}/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    async def test_unknown_route_uses_envelope(self, client):
        response = await client.get(f"{API}/nowhere")

        assert response.status_code == 404
        assert response.json()["success"] is False

    async def test_unexpected_error_is_500(self, app):
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            with patch.object(DiscussionService, "list_posts", side_effect=RuntimeError("boom")):
                response = await c.get(f"{API}/posts")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Internal server error",
            "statusCode": 500,
        }

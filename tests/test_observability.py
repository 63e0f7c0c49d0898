# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tests for logging helpers and validation error formatting.
"""

import json
import logging

from numberchain.gateway.errors import format_validation_errors
from numberchain.observability.logging import (
    JSONFormatter,
    clear_request_context,
    mask_sensitive_data,
    set_request_context,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord("numberchain.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestMasking:

    def test_sensitive_keys_are_redacted(self):
        masked = mask_sensitive_data(
            {"username": "alice", "password": "hunter22", "refreshToken": "abc"}
        )
        assert masked == {
            "username": "alice",
            "password": "[REDACTED]",
            "refreshToken": "[REDACTED]",
        }

    def test_nested_and_jwt_values(self):
        jwt_like = "eyJhbGciOiJIUzI1NiJ9.payload.signature"
        masked = mask_sensitive_data({"items": [{"value": jwt_like}]})
        assert masked["items"][0]["value"] == "eyJhbGci...[REDACTED]"


class TestJSONFormatter:

    def test_includes_request_context(self):
        set_request_context(request_id="req-1", user_id="7")
        try:
            line = JSONFormatter().format(_record())
        finally:
            clear_request_context()

        payload = json.loads(line)
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-1"
        assert payload["user_id"] == "7"

    def test_extra_fields_are_masked(self):
        payload = json.loads(JSONFormatter().format(_record(cookie="accessToken=xyz", post_id=3)))

        assert payload["extra"]["cookie"] == "[REDACTED]"
        assert payload["extra"]["post_id"] == 3


class TestFormatValidationErrors:

    def test_groups_by_path(self):
        errors = [
            {"type": "missing", "loc": ("body", "name"), "msg": "Field required"},
            {"type": "string_too_short", "loc": ("body", "password"), "msg": "too short"},
            {"type": "value_error", "loc": ("body", "password"), "msg": "weak"},
        ]

        assert format_validation_errors(errors) == [
            {"path": "name", "errors": ["Field required"]},
            {"path": "password", "errors": ["too short", "weak"]},
        ]

    def test_locations(self):
        errors = [
            {"type": "int_parsing", "loc": ("path", "post_id"), "msg": "a"},
            {"type": "less_than_equal", "loc": ("query", "limit"), "msg": "b"},
            {"type": "missing", "loc": ("header", "x-token"), "msg": "c"},
            {"type": "model_attributes_type", "loc": ("body",), "msg": "d"},
            {"type": "json_invalid", "loc": ("body", 9), "msg": "e"},
        ]

        paths = [entry["path"] for entry in format_validation_errors(errors)]
        assert paths == ["post_id", "query.limit", "headers.x-token", "root"]

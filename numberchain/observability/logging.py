# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Structured Logging

Every log line carries the request id and, once a session has been
authenticated, the user id. Two output formats:

- ``json``: one object per line, for log shipping
- ``human``: colored single lines, for development

Anything that looks like a credential (password fields, cookies, JWTs)
is redacted before it reaches a handler. Authentication and creation
events additionally go to the ``numberchain.audit`` logger.

Usage:
    configure_logging(level="INFO", format="json")

    audit_logger.auth("login", success=True, details={"user_id": 7})
"""

import json
import logging
import re
import sys
import traceback
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any

# ============================================================
# REQUEST CONTEXT
# ============================================================

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)


def bind_request(request_id: str) -> tuple[Token, Token]:
    """Start a request scope. Pass the result to `unbind_request` when done."""
    return request_id_var.set(request_id), user_id_var.set(None)


def unbind_request(tokens: tuple[Token, Token]) -> None:
    request_token, user_token = tokens
    request_id_var.reset(request_token)
    user_id_var.reset(user_token)


def set_request_context(request_id: str | None = None, user_id: str | None = None):
    """Attach ids to the current context; None leaves a value untouched."""
    if request_id:
        request_id_var.set(request_id)
    if user_id:
        user_id_var.set(user_id)


def clear_request_context():
    request_id_var.set(None)
    user_id_var.set(None)


def get_request_context() -> dict[str, str | None]:
    return {"request_id": request_id_var.get(), "user_id": user_id_var.get()}


# ============================================================
# REDACTION
# ============================================================

REDACTED = "[REDACTED]"

# Substrings of keys whose values are never logged
SENSITIVE_FIELDS = frozenset(
    {"password", "secret", "token", "authorization", "cookie", "credential", "jwt"}
)

_TOKEN_LIKE = re.compile(r"^(Bearer\s+)?eyJ[\w-]+\.[\w-]+\.[\w-]*$")


def _is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_FIELDS)


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Redact credentials inside dicts, lists and tuples.

    Values under sensitive keys are replaced outright. Strings shaped
    like a JWT keep their first eight characters so related log lines
    can still be matched up.
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"

    match data:
        case dict():
            return {
                key: REDACTED
                if _is_sensitive_key(key)
                else mask_sensitive_data(value, depth + 1, max_depth)
                for key, value in data.items()
            }
        case list() | tuple():
            return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
        case str() if _TOKEN_LIKE.match(data):
            return f"{data[:8]}...{REDACTED}"
    return data


# ============================================================
# FORMATTERS
# ============================================================

# Attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "color_message"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, UTC)


class JSONFormatter(logging.Formatter):
    """One JSON object per line; None fields are omitted."""

    def __init__(self, mask_sensitive: bool = True):
        super().__init__()
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **get_request_context(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "stack_trace": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
            }

        extra = _extra_fields(record)
        if extra:
            entry["extra"] = mask_sensitive_data(extra) if self.mask_sensitive else extra

        return json.dumps(
            {key: value for key, value in entry.items() if value is not None},
            default=str,
        )


class HumanFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL logger [req=... user=...] message`` with optional color."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.use_colors and record.levelno in self.COLORS:
            level = f"{self.COLORS[record.levelno]}{level}{self.RESET}"

        ctx = get_request_context()
        tags = " ".join(
            part
            for part in (
                f"req={ctx['request_id'][:8]}" if ctx["request_id"] else "",
                f"user={ctx['user_id']}" if ctx["user_id"] else "",
            )
            if part
        )

        line = " ".join(
            part
            for part in (
                _record_time(record).strftime("%H:%M:%S.%f")[:-3],
                level,
                record.name,
                f"[{tags}]" if tags else "",
                record.getMessage(),
            )
            if part
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================
# CONFIGURATION
# ============================================================

# Library loggers that are too chatty at INFO
_QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "passlib": logging.ERROR,
}


def configure_logging(
    level: str = "INFO",
    format: str = "json",  # "json" or "human"
    mask_sensitive: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Route all logging through one stdout handler.

    Replaces any handlers already on the root logger, so calling it
    twice does not duplicate output.
    """
    if format == "json":
        formatter: logging.Formatter = JSONFormatter(mask_sensitive=mask_sensitive)
    else:
        formatter = HumanFormatter(use_colors=use_colors and sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return root


# ============================================================
# AUDIT TRAIL
# ============================================================


class AuditLogger:
    """
    Audit events for sessions and content.

    Events are INFO records tagged ``audit_event`` so a log pipeline can
    split them out; request and user ids come from the request context.
    """

    def __init__(self, name: str = "numberchain.audit"):
        self._logger = logging.getLogger(name)

    def log(
        self,
        action: str,
        target: str,
        target_id: str | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
    ):
        outcome = "ok" if success else "failed"
        self._logger.info(
            f"AUDIT {action} {target} {outcome}",
            extra={
                "audit_event": True,
                "action": action,
                "target": target,
                "target_id": target_id,
                "success": success,
                "details": mask_sensitive_data(details) if details else None,
            },
        )

    def create(self, resource_type: str, resource_id: str, details: dict | None = None):
        """A post or reply was stored."""
        self.log("create", resource_type, resource_id, details)

    def auth(self, event: str, success: bool, details: dict | None = None):
        """register, login, logout, rotate or session rejection."""
        self.log("auth", event, details=details, success=success)


audit_logger = AuditLogger()


__all__ = [
    "AuditLogger",
    "HumanFormatter",
    "JSONFormatter",
    "REDACTED",
    "audit_logger",
    "bind_request",
    "clear_request_context",
    "configure_logging",
    "get_request_context",
    "mask_sensitive_data",
    "set_request_context",
    "unbind_request",
]

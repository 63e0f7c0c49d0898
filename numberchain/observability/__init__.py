# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""Observability: structured logging, request context and audit trail."""

from .logging import (
    AuditLogger,
    HumanFormatter,
    JSONFormatter,
    audit_logger,
    bind_request,
    clear_request_context,
    configure_logging,
    get_request_context,
    mask_sensitive_data,
    set_request_context,
    unbind_request,
)

__all__ = [
    "AuditLogger",
    "HumanFormatter",
    "JSONFormatter",
    "audit_logger",
    "bind_request",
    "clear_request_context",
    "configure_logging",
    "get_request_context",
    "mask_sensitive_data",
    "set_request_context",
    "unbind_request",
]

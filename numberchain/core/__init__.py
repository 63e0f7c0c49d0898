# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""Core infrastructure: settings, lifecycle and the exception hierarchy."""

from .exceptions import NumberChainError
from .lifecycle import Lifecycle, utcnow
from .settings import Settings, get_settings

__all__ = [
    "Lifecycle",
    "NumberChainError",
    "Settings",
    "get_settings",
    "utcnow",
]

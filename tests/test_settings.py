# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tests for configuration.

Tests: defaults, derived values, production secret checks.
"""

import pytest
from pydantic import ValidationError

from numberchain.core.settings import (
    DEV_ACCESS_TOKEN_SECRET,
    DatabaseSettings,
    SecuritySettings,
    Settings,
)

STRONG_ACCESS = "a" * 16 + "-access-secret-for-production"
STRONG_REFRESH = "r" * 16 + "-refresh-secret-for-production"


def _production(**security):
    return Settings(
        environment="production",
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
        security=SecuritySettings(**security),
    )


class TestDefaults:

    def test_token_lifetimes(self):
        security = SecuritySettings()
        assert security.access_token_expire_minutes == 15
        assert security.refresh_token_expire_days == 7
        assert security.access_token_max_age == 15 * 60
        assert security.refresh_token_max_age == 7 * 24 * 60 * 60

    def test_api_base_path(self):
        assert Settings(api_prefix="/api/", api_version="v2").api_base_path == "/api/v2"

    def test_environment_flags(self):
        settings = Settings(environment="staging")
        assert settings.is_staging
        assert not settings.is_production
        assert not settings.is_development

    def test_empty_secret_rejected(self):
        with pytest.raises(ValidationError):
            SecuritySettings(access_token_secret="  ")


class TestProductionGuard:

    def test_strong_distinct_secrets_accepted(self):
        settings = _production(
            access_token_secret=STRONG_ACCESS,
            refresh_token_secret=STRONG_REFRESH,
        )
        assert settings.is_production

    def test_development_default_rejected(self):
        with pytest.raises(ValueError, match="insecure default"):
            _production(
                access_token_secret=DEV_ACCESS_TOKEN_SECRET,
                refresh_token_secret=STRONG_REFRESH,
            )

    def test_short_secret_rejected(self):
        with pytest.raises(ValueError, match="at least 32 characters"):
            _production(
                access_token_secret="short-but-not-default",
                refresh_token_secret=STRONG_REFRESH,
            )

    def test_shared_secret_rejected(self):
        with pytest.raises(ValueError, match="different secrets"):
            _production(access_token_secret=STRONG_ACCESS, refresh_token_secret=STRONG_ACCESS)

    def test_development_allows_defaults(self):
        settings = Settings(environment="development")
        assert settings.security.access_token_secret

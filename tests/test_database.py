# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tests for the database handle.

Tests: health check, closed handle refusing new sessions, repeated close.
"""

import pytest

from numberchain.data.database import Database


class TestDatabase:

    async def test_health_check(self, database):
        assert await database.health_check() == {"status": "healthy", "backend": "sqlite"}

    async def test_closed_database_refuses_sessions(self, settings):
        database = Database(settings.database)
        await database.close()

        with pytest.raises(RuntimeError, match="closed"):
            database.session()
        with pytest.raises(RuntimeError, match="closed"):
            database.engine

    async def test_close_twice(self, settings):
        database = Database(settings.database)

        await database.close()
        await database.close()

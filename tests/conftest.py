"""
Number Chain Test Suite - Shared Fixtures

Every test gets its own SQLite database file under tmp_path, so nothing
leaks between tests and no PostgreSQL server is needed.
"""

import httpx
import pytest

from numberchain.core.settings import (
    DatabaseSettings,
    ObservabilitySettings,
    SecuritySettings,
    Settings,
)
from numberchain.data.database import Database
from numberchain.gateway.app import create_app
from numberchain.gateway.auth import PasswordService, TokenCodec

API = "/api/v1"

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Development settings backed by a throwaway SQLite file."""
    return Settings(
        environment="development",
        database=DatabaseSettings(
            url=f"sqlite+aiosqlite:///{tmp_path / 'numberchain.db'}",
            create_tables=True,
        ),
        security=SecuritySettings(
            access_token_secret="test-access-secret-0123456789abcdef",
            refresh_token_secret="test-refresh-secret-0123456789abcdef",
            bcrypt_rounds=4,
        ),
        observability=ObservabilitySettings(level="WARNING", format="human"),
    )


@pytest.fixture
def codec(settings) -> TokenCodec:
    return TokenCodec(settings.security)


@pytest.fixture
def password_service() -> PasswordService:
    return PasswordService(rounds=4)


@pytest.fixture
async def database(settings):
    db = Database(settings.database)
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
async def user(session, password_service):
    """A persisted user named alice."""
    from numberchain.data.repositories import UserRepository

    created = await UserRepository(session).create(
        name="Alice",
        username="alice",
        password_hash=password_service.hash_password(TEST_PASSWORD),
    )
    await session.commit()
    return created


# ============================================================
# HTTP
# ============================================================


@pytest.fixture
async def app(settings):
    application = create_app(settings, configure_logs=False)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


async def register(client, username="alice", name="Alice", password=TEST_PASSWORD):
    return await client.post(
        f"{API}/auth/register",
        json={"name": name, "username": username, "password": password},
    )


async def login(client, username="alice", password=TEST_PASSWORD):
    return await client.post(
        f"{API}/auth/login",
        json={"username": username, "password": password},
    )


@pytest.fixture
async def logged_in(client):
    """Client holding alice's session cookies. Returns alice's user id."""
    response = await register(client)
    assert response.status_code == 201
    response = await login(client)
    assert response.status_code == 200
    return response.json()["data"]["id"]


# Cookies from http://testserver land in the jar under this domain
COOKIE_DOMAIN = "testserver.local"


def set_cookie(client, name, value):
    """Put a cookie in the jar where server-set cookies will replace it."""
    client.cookies.set(name, value, domain=COOKIE_DOMAIN)


async def ledger_snapshot(database, user_id):
    """Every refresh record of a user, read through a fresh session."""
    from numberchain.data.repositories import RefreshTokenRepository

    async with database.session() as s:
        records = await RefreshTokenRepository(s).list_for_user(user_id)
    return [(record.jti, record.revoked_at, record.replaced_by) for record in records]

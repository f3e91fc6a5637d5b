"""
Test fixtures for the Colis API test suite.

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client with get_db pointed at the test database
  - member / second_member / carrier_member / admin: registered users, each
    exposed as {"id", "email", "password", "headers"} where headers carries
    that user's bearer token

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) keeps tests fast and isolated.
    A StaticPool shares the single in-memory connection between the
    fixture sessions and the requests.
  - Users are created through the real /users/register and /users/login
    endpoints, so fixtures exercise the same code paths as clients.
  - The admin is registered normally and then promoted directly in the
    database: admins are provisioned by an operator, never self-assigned.
  - Each user carries its own headers instead of mutating client.headers,
    so cross-user tests can interleave requests on one client.
"""

import os

# Settings require a secret; set one before the application is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from colis.database import Base, get_db
from colis.main import app
from colis.models.user import User, UserRole


TEST_DATABASE_URL = "sqlite+aiosqlite://"


def registration_payload(email: str, password: str = "SecurePass123!", **overrides) -> dict:
    """A complete, valid registration body."""
    payload = {
        "email": email,
        "password": password,
        "first_name": "Test",
        "last_name": "User",
        "address": "12 rue des Lilas",
        "zipcode": "75011",
        "city": "Paris",
        "phone_number": "0601020304",
    }
    payload.update(overrides)
    return payload


async def register_and_login(
    client: AsyncClient,
    email: str,
    password: str = "SecurePass123!",
    carrier: bool = False,
) -> dict:
    """Register a user through the API and return its id and auth headers."""
    response = await client.post(
        "/users/register",
        json=registration_payload(email, password, carrier=carrier),
    )
    assert response.status_code == 201, f"Register failed: {response.text}"
    user_id = response.json()["id"]
    headers = await login_headers(client, email, password)
    return {"id": user_id, "email": email, "password": password, "headers": headers}


async def login_headers(client: AsyncClient, email: str, password: str) -> dict:
    response = await client.post(
        "/users/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, f"Login failed: {response.text}"
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    Overrides get_db so every request uses the in-memory database; the
    override keeps the production commit/rollback behaviour.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def member(client):
    """A registered CUSTOMER with a valid token."""
    return await register_and_login(client, "member@example.com")


@pytest_asyncio.fixture
async def second_member(client):
    """A second CUSTOMER, for cross-user authorization tests."""
    return await register_and_login(client, "second@example.com", "SecurePass456!")


@pytest_asyncio.fixture
async def carrier_member(client):
    """A user registered with carrier=true (role CARRIER, empty carrier profile)."""
    return await register_and_login(
        client, "carrier@example.com", "CarrierPass789!", carrier=True
    )


@pytest_asyncio.fixture
async def admin(client, session_factory):
    """
    A registered user promoted to ADMIN in the database.

    The token is requested after the promotion because the role is a
    token claim.
    """
    response = await client.post(
        "/users/register",
        json=registration_payload("admin@example.com", "AdminPass123!"),
    )
    assert response.status_code == 201
    user_id = response.json()["id"]

    async with session_factory() as session:
        await session.execute(
            update(User).where(User.email == "admin@example.com").values(role=UserRole.ADMIN)
        )
        await session.commit()

    headers = await login_headers(client, "admin@example.com", "AdminPass123!")
    return {"id": user_id, "email": "admin@example.com", "headers": headers}

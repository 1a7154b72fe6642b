import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import uuid4

# Settings are read at import time; tests never need real credentials
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

from app.core.security import create_access_token, get_password_hash
from app.database import get_async_database_url, get_db
from app.dependencies import get_cache_manager
from app.main import app
from app.models import cadastur_registry, expeditions, metadata, trails, users

# Test database: PostgreSQL when TEST_DATABASE_URL is set, otherwise a
# throwaway SQLite file so the suite runs without external services
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

if TEST_DATABASE_URL:
    TEST_DATABASE_URL = get_async_database_url(TEST_DATABASE_URL)
    engine_kwargs: dict[str, Any] = {}
else:
    _db_dir = tempfile.mkdtemp(prefix="trekko-tests-")
    TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
    # Concurrent sessions wait for the writer instead of failing with "database is locked"
    engine_kwargs = {"connect_args": {"timeout": 30}}

# Use NullPool so every session gets its own connection
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    **engine_kwargs,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

DEFAULT_PASSWORD = "trilha-segura-123"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on freshly created tables."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker[AsyncSession]:
    """Factory for extra sessions, one per simulated concurrent request."""
    return TestSessionLocal


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the test session, without Redis."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[dict]]:
    """Factory inserting an account directly."""

    async def _make_user(
        email: str | None = None,
        name: str = "Test User",
        role: str = "user",
        user_type: str = "trekker",
        certificate_number: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> dict:
        values = {
            "id": uuid4(),
            "external_id": f"email_{uuid4().hex}",
            "name": name,
            "email": email or f"{uuid4().hex[:10]}@example.com",
            "password_hash": get_password_hash(password),
            "login_method": "email",
            "role": role,
            "user_type": user_type,
            "certificate_number": certificate_number,
            "certificate_validated": certificate_number is not None,
        }
        await db_session.execute(insert(users).values(**values))
        await db_session.commit()
        return values

    return _make_user


@pytest_asyncio.fixture
async def trekker(make_user) -> dict:
    """A regular trekker account."""
    return await make_user(email="trekker@example.com", name="Ana Trilheira")


@pytest_asyncio.fixture
async def guide(make_user) -> dict:
    """A certified guide account."""
    return await make_user(
        email="guide@example.com",
        name="Bruno Guia",
        user_type="guide",
        certificate_number="GUIA0001",
    )


@pytest_asyncio.fixture
async def admin(make_user) -> dict:
    """An admin account."""
    return await make_user(email="admin@example.com", name="Carla Admin", role="admin")


def bearer_headers(user: dict) -> dict:
    """Bearer headers for an account."""
    token = create_access_token(
        data={"sub": str(user["id"])}, expires_delta=timedelta(minutes=30)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build bearer headers for any account."""
    return bearer_headers


@pytest.fixture
def default_password() -> str:
    """Password of accounts created by make_user."""
    return DEFAULT_PASSWORD


@pytest.fixture
def auth_headers(trekker) -> dict:
    """Authentication headers for the trekker."""
    return bearer_headers(trekker)


@pytest.fixture
def guide_headers(guide) -> dict:
    """Authentication headers for the guide."""
    return bearer_headers(guide)


@pytest.fixture
def admin_headers(admin) -> dict:
    """Authentication headers for the admin."""
    return bearer_headers(admin)


@pytest_asyncio.fixture
async def trail(db_session: AsyncSession) -> dict:
    """A trail in the catalogue."""
    values = {
        "id": uuid4(),
        "name": "Pico da Bandeira",
        "uf": "MG",
        "city": "Alto Caparaó",
        "park": "Parque Nacional do Caparaó",
        "distance_km": Decimal("9.50"),
        "elevation_gain": 1100,
        "difficulty": "hard",
    }
    await db_session.execute(insert(trails).values(**values))
    await db_session.commit()
    return values


@pytest.fixture
def make_expedition(db_session: AsyncSession, guide, trail) -> Callable[..., Awaitable[dict]]:
    """Factory inserting an expedition led by the guide fixture."""

    async def _make_expedition(
        capacity: int = 10,
        enrolled_count: int = 0,
        status: str = "published",
        price: Decimal | None = Decimal("150.00"),
        title: str = "Travessia do Caparaó",
    ) -> dict:
        values = {
            "id": uuid4(),
            "guide_id": guide["id"],
            "trail_id": trail["id"],
            "title": title,
            "start_date": datetime.now(UTC) + timedelta(days=14),
            "capacity": capacity,
            "enrolled_count": enrolled_count,
            "price": price,
            "status": status,
        }
        await db_session.execute(insert(expeditions).values(**values))
        await db_session.commit()
        return values

    return _make_expedition


@pytest_asyncio.fixture
async def expedition(make_expedition) -> dict:
    """A published expedition with ten spots."""
    return await make_expedition()


@pytest.fixture
def make_registry_record(db_session: AsyncSession) -> Callable[..., Awaitable[dict]]:
    """Factory inserting a CADASTUR registry entry."""

    async def _make_registry_record(
        certificate_number: str = "21123456789",
        full_name: str = "Daniel Montanhista",
        uf: str = "MG",
        valid_until: date | None = date(2030, 5, 29),
    ) -> dict:
        values = {
            "id": uuid4(),
            "certificate_number": certificate_number,
            "full_name": full_name,
            "activity_type": "Guia de Turismo",
            "uf": uf,
            "city": "Belo Horizonte",
            "phone": "(31) 99999-0000",
            "email": "daniel@example.com",
            "valid_until": valid_until,
            "languages": ["Português", "Inglês"],
            "categories": ["Regional"],
            "is_driver_guide": False,
        }
        await db_session.execute(insert(cadastur_registry).values(**values))
        await db_session.commit()
        return values

    return _make_registry_record


@pytest_asyncio.fixture
async def registry_record(make_registry_record) -> dict:
    """A valid registry entry."""
    return await make_registry_record()

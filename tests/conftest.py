"""
Pytest configuration and fixtures
"""
import os
import tempfile

# Settings are read at import time; point the app at a throwaway database
# and keep the slot cache off before anything from app is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="agendo-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
os.environ["REDIS_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

import asyncio
from typing import AsyncGenerator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.database import Base, get_db, session_scope
from app.core.security import hash_password, create_access_token
from app.models.user import User, UserRole
from tests.helpers import PASSWORD, PROVIDER_PHONE, CLIENT_PHONE, Marketplace, auth_headers, register


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a test database engine backed by a per-test SQLite file"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())

    yield engine

    asyncio.run(engine.dispose())


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
def client(session_factory):
    """Create a test client"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Session bound to the running test loop, for service level tests"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def test_user_data():
    """Sample client registration data"""
    return {
        "name": "Maria Cliente",
        "email": "maria@agendoai.com.br",
        "password": PASSWORD,
        "phone": CLIENT_PHONE,
        "role": "client",
    }


@pytest.fixture
def test_provider_data():
    """Sample provider registration data"""
    return {
        "name": "João Prestador",
        "email": "joao@agendoai.com.br",
        "password": PASSWORD,
        "phone": PROVIDER_PHONE,
        "role": "provider",
        "business_name": "Barbearia do João",
        "city": "São Paulo",
        "state": "SP",
    }


@pytest.fixture
def admin_headers(session_factory):
    """Admins cannot self register; insert one and mint its token"""

    async def create_admin():
        async with session_factory() as session:
            admin = User(
                email="admin@agendoai.com.br",
                password_hash=hash_password(PASSWORD),
                name="Admin",
                role=UserRole.ADMIN,
                is_active=True,
                is_verified=True,
            )
            session.add(admin)
            await session.commit()
            await session.refresh(admin)
            return admin.id

    admin_id = asyncio.run(create_admin())
    token = create_access_token({"sub": str(admin_id), "email": "admin@agendoai.com.br", "role": "admin"})
    return auth_headers(token)


@pytest.fixture
def marketplace(client, admin_headers, test_provider_data, test_user_data):
    """
    Catalog with one template, a verified provider working 08:00-18:00 every
    day and offering it for R$ 100,00, and a registered client
    """
    niche = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=admin_headers).json()
    category = client.post(
        "/api/v1/categories",
        json={"name": "Cabelo", "niche_id": niche["id"]},
        headers=admin_headers,
    ).json()
    template = client.post(
        "/api/v1/service-templates",
        json={"name": "Corte de cabelo", "category_id": category["id"], "duration": 60},
        headers=admin_headers,
    ).json()

    provider, provider_headers = register(client, test_provider_data)
    response = client.post(
        "/api/v1/provider/services",
        json={"template_id": template["id"], "price": 10000},
        headers=provider_headers,
    )
    assert response.status_code == 201, response.text
    service = response.json()

    response = client.put(
        "/api/v1/provider/availability",
        json={"days": [{"day_of_week": d, "start_time": "08:00", "end_time": "18:00"} for d in range(7)]},
        headers=provider_headers,
    )
    assert response.status_code == 200, response.text

    response = client.put(
        f"/api/v1/admin/providers/{provider['id']}/verify",
        json={"is_verified": True},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text

    customer, customer_headers = register(client, test_user_data)

    return Marketplace(client, admin_headers, provider, provider_headers, customer, customer_headers, template, service)

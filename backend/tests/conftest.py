"""
DevCamper Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied before any devcamper import; each
       test gets its own SQLite file (aiosqlite) with the schema created
       from Base.metadata.

Fixture Hierarchy:
    engine ─► session_factory ─► db_session
                     │
                     └─► app (state set by hand) ─► client
    fake_geocoder, photo_storage: collaborators placed on app.state
    make_user: inserts a user and returns it with a bearer token
"""

import os
import tempfile

# Override settings for testing BEFORE any devcamper imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["GEOCODER_API_KEY"] = "test-key-not-real"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="devcamper_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"
os.environ["CB_FAILURE_THRESHOLD"] = "2"

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from devcamper.database import Base, build_session_factory
from devcamper.main import create_app
from devcamper.models import User
from devcamper.services.auth_service import create_access_token, hash_password
from devcamper.services.geocoder_base import GeocodedLocation, GeocoderService
from devcamper.services.photo_service import PhotoStorage


BOSTON = GeocodedLocation(
    latitude=42.3459,
    longitude=-71.0779,
    formatted_address="233 Bay State Rd, Boston, MA 02215, US",
    street="233 Bay State Rd",
    city="Boston",
    state="MA",
    zipcode="02215",
    country="US",
)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'devcamper.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_geocoder():
    """
    GeocoderService double that always answers with a Boston address.

    Usage:
        fake_geocoder.geocode.side_effect = GeocoderError()
    """
    geocoder = AsyncMock(spec=GeocoderService)
    geocoder.geocode.return_value = BOSTON
    geocoder.health_check.return_value = True
    return geocoder


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def photo_storage(tmp_path):
    return PhotoStorage(storage_root=str(tmp_path / "uploads"))


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(engine, session_factory, fake_geocoder, photo_storage):
    """
    The FastAPI app with its state filled in by hand.

    ASGITransport does not run the lifespan, so the engine, session factory
    and collaborators are attached here instead.
    """
    application = create_app()
    application.state.engine = engine
    application.state.session_factory = session_factory
    application.state.geocoder = fake_geocoder
    application.state.photo_storage = photo_storage
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(session_factory):
    """
    Factory inserting a committed user.

    Usage:
        user, headers = await make_user("publisher")
    """
    counter = {"n": 0}

    async def _make(role: str = "user", password: str = "secret123"):
        counter["n"] += 1
        async with session_factory() as session:
            user = User(
                name=f"{role.title()} {counter['n']}",
                email=f"{role}{counter['n']}@example.com",
                role=role,
                password_hash=hash_password(password),
            )
            session.add(user)
            await session.commit()
        headers = {"Authorization": f"Bearer {create_access_token(user.id)}"}
        return user, headers

    return _make

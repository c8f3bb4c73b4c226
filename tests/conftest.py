"""Shared test fixtures: per-test SQLite file DB + app + test client."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# Import all models so metadata is populated
import notenest.models  # noqa: F401
from notenest.core.config import Settings
from notenest.core.database import init_db
from notenest.main import create_app
from notenest.models.tenant import Tenant
from notenest.services.seed import DEMO_PASSWORD, seed_demo_data

TEST_SECRET = "test-secret-key-that-is-long-enough-000"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'notenest.db'}",
        jwt_secret_key=TEST_SECRET,
    )


@pytest.fixture
async def app(settings) -> AsyncGenerator[FastAPI, None]:
    application = create_app(settings)
    await init_db(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
def session_factory(app):
    """Open short-lived sessions only; a lingering transaction holds the SQLite write lock."""
    return app.state.session_factory


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def demo(app, session_factory) -> dict[str, Tenant]:
    """Acme and Globex, both free, each with admin@<slug>.com and member@<slug>.com."""
    async with session_factory() as session:
        return await seed_demo_data(session, app.state.password_verifier)


@pytest.fixture
def login(client):
    """Log in a demo user and return bearer headers."""

    async def _login(tenant: Tenant, role: str = "admin") -> dict[str, str]:
        resp = await client.post("/v1/auth/login", json={
            "tenant_id": str(tenant.id),
            "email": f"{role}@{tenant.subdomain}.com",
            "password": DEMO_PASSWORD,
        })
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login

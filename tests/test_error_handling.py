"""Database failures surface as a generic 500 envelope."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from notenest.core.database import get_session


class _BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError(
            "SELECT notes.secret_column FROM notes",
            {},
            Exception("disk I/O error at /var/lib/notenest"),
        )

    async def get(self, *args, **kwargs):
        return await self.execute()


async def _broken_session():
    yield _BrokenSession()


@pytest.mark.asyncio
async def test_database_error_returns_generic_500(client: AsyncClient, app, demo, login):
    headers = await login(demo["acme"], "admin")
    app.dependency_overrides[get_session] = _broken_session
    try:
        resp = await client.get("/v1/notes", headers=headers)
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error"}
    assert "disk I/O" not in resp.text
    assert "secret_column" not in resp.text


@pytest.mark.asyncio
async def test_database_error_is_logged(client: AsyncClient, app, demo, login, caplog):
    headers = await login(demo["acme"], "admin")
    app.dependency_overrides[get_session] = _broken_session
    try:
        with caplog.at_level("ERROR", logger="notenest.main"):
            await client.get("/v1/notes", headers=headers)
    finally:
        app.dependency_overrides.clear()

    assert "Database error on GET /v1/notes" in caplog.text

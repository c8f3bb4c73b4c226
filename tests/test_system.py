"""Health endpoint and the console runner."""

import pytest
import uvicorn
from httpx import AsyncClient

from notenest import main


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_run_serves_app_with_configured_address(monkeypatch, settings):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(main, "get_settings", lambda: settings)

    main.run()

    assert calls == [("notenest.main:app", {"host": settings.host, "port": settings.port})]

"""Plan-based note quota: limits, upgrade release and concurrent creation."""

import asyncio
import uuid

import pytest
from httpx import AsyncClient
from sqlmodel import select

from notenest.core.errors import NotFound
from notenest.models.note import Note
from notenest.models.tenant import Tenant, TenantPlan
from notenest.services import notes as note_service
from notenest.services import quota


async def _create(client: AsyncClient, headers: dict, title: str = "Note"):
    return await client.post("/v1/notes", json={"title": title, "content": "x"}, headers=headers)


async def _note_count(session_factory, tenant_id) -> tuple[int, int]:
    """Return (rows in notes, tenant.note_count)."""
    async with session_factory() as session:
        rows = (await session.execute(select(Note).where(Note.tenant_id == tenant_id))).scalars().all()
        tenant = await session.get(Tenant, tenant_id)
        return len(rows), tenant.note_count


@pytest.mark.asyncio
async def test_free_plan_scenario(client: AsyncClient, demo, login):
    """Free tenant with 2 notes: 3rd ok, 4th blocked, upgrade, 4th ok, list shows 4."""
    acme = demo["acme"]
    headers = await login(acme, "admin")
    for i in range(2):
        assert (await _create(client, headers, f"Existing {i}")).status_code == 201

    resp = await _create(client, headers, "Third")
    assert resp.status_code == 201

    resp = await _create(client, headers, "Fourth")
    assert resp.status_code == 403
    body = resp.json()
    assert body["success"] is False
    assert body["limitReached"] is True
    assert "upgrade" in body["message"].lower()

    resp = await client.post("/v1/tenants/acme/upgrade", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["plan"] == "pro"

    resp = await _create(client, headers, "Fourth")
    assert resp.status_code == 201

    resp = await client.get("/v1/notes", headers=headers)
    assert resp.json()["count"] == 4


@pytest.mark.asyncio
async def test_quota_is_per_tenant(client: AsyncClient, demo, login):
    acme = await login(demo["acme"], "member")
    globex = await login(demo["globex"], "member")
    for i in range(3):
        assert (await _create(client, acme, f"A{i}")).status_code == 201

    assert (await _create(client, acme, "A3")).status_code == 403
    assert (await _create(client, globex, "G0")).status_code == 201


@pytest.mark.asyncio
async def test_quota_counts_all_members(client: AsyncClient, demo, login):
    admin = await login(demo["acme"], "admin")
    member = await login(demo["acme"], "member")
    await _create(client, admin)
    await _create(client, admin)
    await _create(client, member)

    resp = await _create(client, member)
    assert resp.status_code == 403
    assert resp.json()["limitReached"] is True


@pytest.mark.asyncio
async def test_delete_frees_a_slot(client: AsyncClient, demo, login, session_factory):
    headers = await login(demo["acme"], "member")
    ids = [(await _create(client, headers, f"N{i}")).json()["data"]["id"] for i in range(3)]
    assert (await _create(client, headers)).status_code == 403

    assert (await client.delete(f"/v1/notes/{ids[0]}", headers=headers)).status_code == 200
    assert (await _create(client, headers, "Replacement")).status_code == 201
    assert await _note_count(session_factory, demo["acme"].id) == (3, 3)


@pytest.mark.asyncio
async def test_delete_of_already_deleted_note_keeps_counter(
    client: AsyncClient, demo, login, session_factory, app, monkeypatch
):
    """A delete that read the note before another request removed it must not release a slot."""
    acme = demo["acme"]
    headers = await login(acme, "member")
    ids = [(await _create(client, headers, f"N{i}")).json()["data"]["id"] for i in range(2)]

    async with session_factory() as session:
        stale = await session.get(Note, uuid.UUID(ids[0]))

    assert (await client.delete(f"/v1/notes/{ids[0]}", headers=headers)).status_code == 200
    assert await _note_count(session_factory, acme.id) == (1, 1)

    async def _stale_read(_session, _identity, _note_id):
        return stale

    monkeypatch.setattr(note_service, "_get_scoped", _stale_read)
    identity = app.state.token_codec.verify(headers["Authorization"].removeprefix("Bearer "))
    async with session_factory() as session:
        with pytest.raises(NotFound):
            await note_service.delete_note(session, identity, stale.id)

    assert await _note_count(session_factory, acme.id) == (1, 1)
    statuses = [(await _create(client, headers, f"M{i}")).status_code for i in range(3)]
    assert statuses == [201, 201, 403]
    assert await _note_count(session_factory, acme.id) == (3, 3)


@pytest.mark.asyncio
async def test_downgrade_reapplies_limit(client: AsyncClient, demo, login):
    headers = await login(demo["acme"], "admin")
    await client.post("/v1/tenants/acme/upgrade", headers=headers)
    for i in range(5):
        assert (await _create(client, headers, f"N{i}")).status_code == 201

    resp = await client.post("/v1/tenants/acme/downgrade", headers=headers)
    assert resp.status_code == 200

    # Existing notes stay, new ones are refused while over the free limit
    assert (await client.get("/v1/notes", headers=headers)).json()["count"] == 5
    assert (await _create(client, headers)).status_code == 403


@pytest.mark.asyncio
async def test_concurrent_creation_grants_exactly_one_slot(client: AsyncClient, demo, login, session_factory):
    """Fire many creates at a tenant holding 2 notes: only one may land."""
    acme = demo["acme"]
    headers = await login(acme, "member")
    for i in range(2):
        assert (await _create(client, headers, f"Existing {i}")).status_code == 201

    responses = await asyncio.gather(*(_create(client, headers, f"Race {i}") for i in range(8)))
    codes = [r.status_code for r in responses]
    assert codes.count(201) == 1, codes
    assert codes.count(403) == 7, codes
    assert all(r.json()["limitReached"] for r in responses if r.status_code == 403)

    assert await _note_count(session_factory, acme.id) == (3, 3)


@pytest.mark.asyncio
async def test_concurrent_creation_on_empty_tenant(client: AsyncClient, demo, login, session_factory):
    globex = demo["globex"]
    headers = await login(globex, "admin")

    responses = await asyncio.gather(*(_create(client, headers, f"Race {i}") for i in range(6)))
    codes = [r.status_code for r in responses]
    assert codes.count(201) == 3, codes
    assert await _note_count(session_factory, globex.id) == (3, 3)


# ── Enforcer unit tests ──────────────────────────────────────


@pytest.mark.asyncio
async def test_try_reserve_slot_reports_usage(demo, session_factory):
    tenant_id = demo["acme"].id
    async with session_factory() as session:
        decisions = [await quota.try_reserve_slot(session, tenant_id) for _ in range(4)]
        await session.rollback()

    assert [d.granted for d in decisions] == [True, True, True, False]
    assert [d.used for d in decisions] == [1, 2, 3, 3]
    assert all(d.limit == 3 and d.plan == TenantPlan.FREE for d in decisions)

    # Rolled back: nothing was actually consumed
    assert await _note_count(session_factory, tenant_id) == (0, 0)


@pytest.mark.asyncio
async def test_pro_plan_is_unbounded(demo, session_factory):
    tenant_id = demo["globex"].id
    async with session_factory() as session:
        tenant = await session.get(Tenant, tenant_id)
        tenant.plan = TenantPlan.PRO
        await session.commit()

    async with session_factory() as session:
        decisions = [await quota.try_reserve_slot(session, tenant_id) for _ in range(10)]
        await session.commit()

    assert all(d.granted and d.limit is None for d in decisions)
    assert decisions[-1].used == 10


@pytest.mark.asyncio
async def test_release_slot_never_goes_negative(demo, session_factory):
    tenant_id = demo["acme"].id
    async with session_factory() as session:
        await quota.release_slot(session, tenant_id)
        await session.commit()

    assert await _note_count(session_factory, tenant_id) == (0, 0)


def test_note_limits_by_plan():
    assert quota.note_limit_for(TenantPlan.FREE) == 3
    assert quota.note_limit_for(TenantPlan.FREE, free_limit=5) == 5
    assert quota.note_limit_for(TenantPlan.PRO) is None

"""
Integration tests for the REST API endpoints.

Sessions live in a ``FakeRedis`` behind the real ``WizardSessionRepository``;
the booking gateway and the registration client are overridden so no
outbound request leaves the process.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.config import settings
from src.infrastructure.booking_gateway import GatewayUnavailable, SubmissionRejected
from src.infrastructure.registration_client import RegistrationLookupClient
from src.infrastructure.repositories import WizardSessionRepository
from src.workers.plate_lookup import PlateFieldRegistry


CONTEXT = {
    "passengers": [{"id": "P1", "name": "Ada Lovelace"}],
    "chauffeurs": [{"id": "C1", "name": "Jean Dupont"}],
    "clients": [{"id": "CL1", "name": "Acme Events"}],
}

RIDE_DETAILS = {
    "pickup_address": "123 Main St",
    "dropoff_address": "Airport",
    "pickup_time": "2026-03-02T09:30:00",
}


REGISTRATION_CALLS: list[str] = []


def _registration_handler(request: httpx.Request) -> httpx.Response:
    REGISTRATION_CALLS.append(request.url.params["plaque"])
    if request.url.params["plaque"] == "ZZ-999-ZZ":
        return httpx.Response(404)
    return httpx.Response(200, json={"info": {"marque": "PEUGEOT", "modele": "208"}})


@pytest.fixture
def plate_fields():
    return PlateFieldRegistry(debounce_seconds=0.05)


@pytest_asyncio.fixture
async def client(fake_redis, gateway, plate_fields):
    from src.api.app import create_app
    from src.api.dependencies import (
        get_booking_gateway,
        get_lookup_client,
        get_plate_fields,
        get_session_repository,
    )

    REGISTRATION_CALLS.clear()

    lookup = RegistrationLookupClient(
        client=httpx.AsyncClient(
            transport=httpx.MockTransport(_registration_handler),
            base_url="http://registration",
        )
    )

    app = create_app()
    app.dependency_overrides[get_session_repository] = (
        lambda: WizardSessionRepository(fake_redis)
    )
    app.dependency_overrides[get_booking_gateway] = lambda: gateway
    app.dependency_overrides[get_lookup_client] = lambda: lookup
    app.dependency_overrides[get_plate_fields] = lambda: plate_fields

    with patch(
        "src.api.routes.admin.get_redis",
        new=AsyncMock(return_value=fake_redis),
    ):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    await plate_fields.close_all()
    await lookup.client.aclose()


# ── Helpers ───────────────────────────────────────────────────────────


async def _open(client: AsyncClient, **body) -> str:
    body.setdefault("context", CONTEXT)
    resp = await client.post("/api/v1/wizards", json=body)
    assert resp.status_code == 201
    return resp.json()["session_id"]


async def _patch(client: AsyncClient, sid: str, changes: dict) -> dict:
    resp = await client.patch(f"/api/v1/wizards/{sid}/draft", json=changes)
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _next(client: AsyncClient, sid: str) -> httpx.Response:
    return await client.post(f"/api/v1/wizards/{sid}/next")


async def _ride_on_review(client: AsyncClient, **extra) -> str:
    sid = await _open(client)
    await _patch(client, sid, {"passenger_id": "P1", **RIDE_DETAILS, **extra})
    for _ in range(3):
        assert (await _next(client, sid)).status_code == 200
    return sid


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_open_wizard(client: AsyncClient, fake_redis):
    resp = await client.post("/api/v1/wizards", json={"context": CONTEXT})

    assert resp.status_code == 201
    data = resp.json()
    assert [s["id"] for s in data["steps"]] == [
        "passenger",
        "ride-details",
        "milestones",
        "review",
    ]
    assert data["current_step"] == 0
    assert data["draft"]["use_existing_passenger"] is True
    key = f"wizard:{data['session_id']}"
    assert fake_redis.ttls[key] == settings.session_ttl_seconds


@pytest.mark.asyncio
async def test_unknown_session(client: AsyncClient):
    resp = await client.get("/api/v1/wizards/nope")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_session(client: AsyncClient):
    sid = await _open(client)
    assert (await client.delete(f"/api/v1/wizards/{sid}")).status_code == 204
    assert (await client.delete(f"/api/v1/wizards/{sid}")).status_code == 404


@pytest.mark.asyncio
async def test_next_rejects_invalid_step(client: AsyncClient):
    sid = await _open(client)

    resp = await _next(client, sid)

    assert resp.status_code == 422
    assert "passenger_id" in resp.json()["errors"]
    state = (await client.get(f"/api/v1/wizards/{sid}")).json()
    assert state["current_step"] == 0
    assert "passenger_id" in state["errors"]


@pytest.mark.asyncio
async def test_passenger_toggle_keeps_both_branches(client: AsyncClient):
    sid = await _open(client)
    await _patch(client, sid, {"passenger_id": "P1"})

    state = await _patch(
        client,
        sid,
        {
            "use_existing_passenger": False,
            "passenger_info": {"first_name": "Ada", "last_name": "Lovelace"},
        },
    )

    assert state["draft"]["passenger_id"] == "P1"
    assert state["draft"]["passenger_info"]["last_name"] == "Lovelace"
    assert (await _next(client, sid)).status_code == 200


@pytest.mark.asyncio
async def test_mission_toggle_clamps_current_step(client: AsyncClient):
    sid = await _open(client)
    await _patch(client, sid, {"passenger_id": "P1", "is_mission": True})
    await _next(client, sid)
    state = (await _next(client, sid)).json()
    assert state["current_step_id"] == "mission"
    assert state["draft"]["mission"]["start_date"] is not None

    state = await _patch(client, sid, {"is_mission": False})

    assert state["current_step_id"] == "milestones"


@pytest.mark.asyncio
async def test_jump_forward_validates(client: AsyncClient):
    sid = await _open(client)
    await _patch(client, sid, {"passenger_id": "P1"})

    resp = await client.post(f"/api/v1/wizards/{sid}/steps/3")

    assert resp.status_code == 422
    assert "pickup_address" in resp.json()["errors"]
    state = (await client.get(f"/api/v1/wizards/{sid}")).json()
    assert state["current_step_id"] == "passenger"


@pytest.mark.asyncio
async def test_jump_out_of_range(client: AsyncClient):
    sid = await _open(client)
    resp = await client.post(f"/api/v1/wizards/{sid}/steps/9")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_back(client: AsyncClient):
    sid = await _ride_on_review(client)
    resp = await client.post(f"/api/v1/wizards/{sid}/back")
    assert resp.json()["current_step_id"] == "milestones"


@pytest.mark.asyncio
async def test_create_mission_for_chauffeur(client: AsyncClient):
    sid = await _open(client)
    await _patch(client, sid, {"passenger_id": "P1"})

    resp = await client.post(f"/api/v1/wizards/{sid}/create-mission")
    assert resp.status_code == 409

    await _patch(client, sid, {"mission": {"chauffeur_id": "C1"}})
    resp = await client.post(f"/api/v1/wizards/{sid}/create-mission")

    assert resp.status_code == 200
    data = resp.json()
    assert data["current_step_id"] == "mission"
    assert data["draft"]["mission"]["title"] == "Mission for Ada Lovelace"


@pytest.mark.asyncio
async def test_submit_requires_review_step(client: AsyncClient, gateway):
    sid = await _open(client)
    resp = await client.post(f"/api/v1/wizards/{sid}/submit")
    assert resp.status_code == 409
    assert gateway.saved == []


@pytest.mark.asyncio
async def test_submit_ride_resets_session(client: AsyncClient, gateway):
    sid = await _ride_on_review(client)

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.status_code == 200
    assert resp.json()["kind"] == "ride"
    assert resp.json()["promoted"] is False
    assert gateway.saved[0].pickup_address == "123 Main St"

    state = (await client.get(f"/api/v1/wizards/{sid}")).json()
    assert state["current_step"] == 0
    assert state["draft"]["passenger_id"] is None
    assert state["draft"]["pickup_address"] == ""


@pytest.mark.asyncio
async def test_submit_promotes_free_chauffeur(client: AsyncClient, gateway):
    sid = await _ride_on_review(client, mission={"chauffeur_id": "C1"})

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.status_code == 200
    assert resp.json()["kind"] == "mission"
    assert resp.json()["promoted"] is True
    mission = gateway.saved[0].mission
    assert mission.title == "Mission for Ada Lovelace with Jean Dupont"
    assert mission.rides[0].pickup_address == "123 Main St"


@pytest.mark.asyncio
async def test_submit_busy_chauffeur_stays_ride(client: AsyncClient, gateway):
    sid = await _ride_on_review(client, mission={"chauffeur_id": "C1"})
    busy = dict(CONTEXT, existing_missions=[{"id": "m1", "chauffeur_id": "C1"}])
    await client.put(f"/api/v1/wizards/{sid}/context", json=busy)

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.json()["kind"] == "ride"
    assert gateway.saved[0].is_mission is False


@pytest.mark.asyncio
async def test_submit_gateway_down_keeps_draft(client: AsyncClient, gateway):
    sid = await _ride_on_review(client)
    gateway.error = GatewayUnavailable("Booking service returned HTTP 503")

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.status_code == 502
    state = (await client.get(f"/api/v1/wizards/{sid}")).json()
    assert state["current_step_id"] == "review"
    assert state["draft"]["pickup_address"] == "123 Main St"


@pytest.mark.asyncio
async def test_submit_rejected(client: AsyncClient, gateway):
    sid = await _ride_on_review(client)
    gateway.error = SubmissionRejected(["Chauffeur unavailable"])

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.status_code == 422
    assert resp.json()["errors"] == {"booking": "Chauffeur unavailable"}


@pytest.mark.asyncio
async def test_submit_revalidates_whole_draft(client: AsyncClient, gateway):
    sid = await _ride_on_review(client)
    await _patch(client, sid, {"pickup_address": ""})

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.status_code == 422
    assert resp.json()["errors"] == {"pickup_address": "Pickup address is required"}
    assert gateway.saved == []


@pytest.mark.asyncio
async def test_edit_session_resets_to_initial(client: AsyncClient, gateway):
    initial = {"id": "r-42", "passenger_id": "P1", **RIDE_DETAILS}
    sid = await _open(client, draft=initial)
    await _patch(client, sid, {"dropoff_address": "Gare de Lyon"})
    for _ in range(3):
        await _next(client, sid)

    resp = await client.post(f"/api/v1/wizards/{sid}/submit")

    assert resp.status_code == 200
    assert gateway.saved[0].dropoff_address == "Gare de Lyon"
    state = (await client.get(f"/api/v1/wizards/{sid}")).json()
    assert state["draft"]["id"] == "r-42"
    assert state["draft"]["dropoff_address"] == "Airport"


@pytest.mark.asyncio
async def test_vehicle_lookup_found(client: AsyncClient):
    resp = await client.post("/api/v1/vehicles/lookup", json={"plate": "ab123cd"})
    data = resp.json()
    assert data["status"] == "FOUND"
    assert data["plate"] == "AB-123-CD"
    assert data["vehicle"]["make"] == "PEUGEOT"


@pytest.mark.asyncio
async def test_vehicle_lookup_not_found(client: AsyncClient):
    resp = await client.post("/api/v1/vehicles/lookup", json={"plate": "ZZ999ZZ"})
    assert resp.json()["status"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_vehicle_lookup_foreign(client: AsyncClient):
    resp = await client.post(
        "/api/v1/vehicles/lookup",
        json={"plate": "AB123CD", "is_local_plate": False},
    )
    assert resp.json()["status"] == "SKIPPED"
    assert resp.json()["vehicle"] is None


@pytest.mark.asyncio
async def test_plate_field_applies_lookup(client: AsyncClient, plate_fields):
    resp = await client.post("/api/v1/vehicles/plate-fields")
    assert resp.status_code == 201
    field_id = resp.json()["field_id"]

    resp = await client.put(
        f"/api/v1/vehicles/plate-fields/{field_id}/plate", json={"plate": "ab123cd"}
    )
    assert resp.json()["vehicle"]["lookup_status"] == "PENDING"
    await plate_fields.get(field_id).wait()

    vehicle = (await client.get(f"/api/v1/vehicles/plate-fields/{field_id}")).json()["vehicle"]
    assert vehicle["lookup_status"] == "FOUND"
    assert vehicle["make"] == "PEUGEOT"
    assert vehicle["license_plate"] == "ab123cd"


@pytest.mark.asyncio
async def test_plate_field_superseded_input_never_looked_up(
    client: AsyncClient, plate_fields
):
    field_id = (await client.post("/api/v1/vehicles/plate-fields")).json()["field_id"]
    url = f"/api/v1/vehicles/plate-fields/{field_id}/plate"

    await client.put(url, json={"plate": "AB123CD"})
    await client.put(url, json={"plate": "ZZ999ZZ"})
    await plate_fields.get(field_id).wait()

    assert REGISTRATION_CALLS == ["ZZ-999-ZZ"]
    vehicle = (await client.get(f"/api/v1/vehicles/plate-fields/{field_id}")).json()["vehicle"]
    assert vehicle["lookup_status"] == "NOT_FOUND"
    assert vehicle["make"] == ""


@pytest.mark.asyncio
async def test_plate_field_foreign_plate(client: AsyncClient):
    field_id = (await client.post("/api/v1/vehicles/plate-fields")).json()["field_id"]

    resp = await client.put(
        f"/api/v1/vehicles/plate-fields/{field_id}/plate",
        json={"plate": "B 1234 XY", "is_local_plate": False},
    )

    assert resp.json()["vehicle"]["lookup_status"] == "SKIPPED"
    assert REGISTRATION_CALLS == []


@pytest.mark.asyncio
async def test_plate_field_close(client: AsyncClient):
    field_id = (await client.post("/api/v1/vehicles/plate-fields")).json()["field_id"]
    url = f"/api/v1/vehicles/plate-fields/{field_id}"

    assert (await client.delete(url)).status_code == 204
    assert (await client.get(url)).status_code == 404
    assert (await client.put(f"{url}/plate", json={"plate": "AB123CD"})).status_code == 404

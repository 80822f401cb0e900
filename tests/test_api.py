import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from venuebook.core.config import settings
from venuebook.core.db import get_session
from venuebook.main import app
from venuebook.platform.provider_registry import ProviderRegistry

from conftest import customer

API = settings.API_PREFIX
# a Monday
DAY = "2030-01-07"
HOURS = [{"dayOfWeek": d, "startLocal": "09:00", "endLocal": "17:00"} for d in range(7)]


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def booking_confirmed(self, booking: dict) -> None:
        self.sent.append(booking)


@pytest.fixture
def notifier():
    ProviderRegistry._notifier = RecordingNotifier()
    yield ProviderRegistry._notifier
    ProviderRegistry.reset()


@pytest.fixture
async def client(session_factory, notifier):
    async def _session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def token_for(user_id: uuid.UUID, scopes: list[str], roles: list[str] | None = None) -> dict:
    claims = {"sub": str(user_id), "scopes": scopes, "roles": roles or []}
    return {"Authorization": f"Bearer {jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)}"}


async def _venue(client, **overrides) -> str:
    r = await client.post(f"{API}/venues", json={"name": "Court 1", "timezone": "UTC", "openingHours": HOURS, **overrides})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _hold_body(venue_id, n, start="10:00", end="11:00", key=None):
    return {
        "venueId": venue_id,
        "startAtUtc": f"{DAY}T{start}:00Z",
        "endAtUtc": f"{DAY}T{end}:00Z",
        "customerId": str(customer(n)),
        "idempotencyKey": key or f"key-{n}",
    }


async def test_health(client):
    r = await client.get(f"{API}/health")
    assert r.json() == {"status": "ok"}


async def test_search_hold_book_flow(client, notifier):
    venue_id = await _venue(client)

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY, "serviceDuration": 60})
    assert r.status_code == 200
    slots = r.json()
    assert len(slots) == 29
    assert slots[0]["state"] == "available"
    assert slots[0]["startAtUtc"].startswith(f"{DAY}T09:00:00")

    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 1))
    assert r.status_code == 201, r.text
    hold = r.json()
    assert hold["status"] == "active"
    assert hold["customerId"] == str(customer(1))
    assert "expiresAtUtc" in hold

    # retry with the same key returns the same hold
    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 1))
    assert r.status_code == 200
    assert r.json()["id"] == hold["id"]

    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 2, start="10:30", end="11:30"))
    assert r.status_code == 409
    assert r.json() == {"detail": "Slot no longer available"}

    r = await client.post(f"{API}/bookings", json={"holdId": hold["id"], "customerId": str(customer(1)), "paymentRef": "pi_1"})
    assert r.status_code == 201, r.text
    booking = r.json()
    assert booking["status"] == "confirmed"
    assert booking["verificationCode"] == f"BOOKING:{booking['id']}"
    assert [b["id"] for b in notifier.sent] == [booking["id"]]

    r = await client.get(f"{API}/holds/{hold['id']}")
    assert r.json()["status"] == "consumed"

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY, "serviceDuration": 60})
    starts = [s["startAtUtc"][11:16] for s in r.json()]
    assert "10:00" not in starts and "09:15" not in starts
    assert "09:00" in starts and "11:00" in starts

    r = await client.post(f"{API}/bookings", json={"holdId": hold["id"], "customerId": str(customer(1))})
    assert r.status_code == 409
    assert r.json() == {"detail": "Hold invalid or expired"}

    r = await client.get(f"{API}/bookings/{booking['id']}")
    assert r.json()["holdId"] == hold["id"]


async def test_cancel_hold_endpoint(client):
    venue_id = await _venue(client)
    hold = (await client.post(f"{API}/holds", json=_hold_body(venue_id, 1))).json()

    r = await client.post(f"{API}/holds/{hold['id']}/cancel", json={"customerId": str(customer(1))})
    assert r.status_code == 200
    assert r.json()["status"] == "expired"

    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 2))
    assert r.status_code == 201


async def test_booking_status_change_endpoint(client):
    venue_id = await _venue(client)
    hold = (await client.post(f"{API}/holds", json=_hold_body(venue_id, 1))).json()
    booking = (await client.post(f"{API}/bookings", json={"holdId": hold["id"], "customerId": str(customer(1))})).json()

    r = await client.post(f"{API}/bookings/{booking['id']}/status", json={"status": "no_show"})
    assert r.json()["status"] == "no_show"
    r = await client.post(f"{API}/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert r.status_code == 409

    r = await client.get(f"{API}/bookings", params={"venueId": venue_id})
    assert [b["status"] for b in r.json()] == ["no_show"]


async def test_offline_block_endpoints(client):
    venue_id = await _venue(client)
    r = await client.post(f"{API}/venues/{venue_id}/offline", json={"startAtUtc": f"{DAY}T09:00:00Z", "endAtUtc": f"{DAY}T12:00:00Z", "reason": "relining"})
    assert r.status_code == 201
    block_id = r.json()["id"]

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY})
    assert r.json()[0]["startAtUtc"].startswith(f"{DAY}T12:00:00")

    r = await client.get(f"{API}/venues/{venue_id}/offline")
    assert [b["reason"] for b in r.json()] == ["relining"]

    r = await client.delete(f"{API}/venues/{venue_id}/offline/{block_id}")
    assert r.status_code == 204
    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY})
    assert r.json()[0]["startAtUtc"].startswith(f"{DAY}T09:00:00")


async def test_opening_hours_update(client):
    venue_id = await _venue(client)
    r = await client.put(f"{API}/venues/{venue_id}/opening-hours", json={"openingHours": [{"dayOfWeek": 1, "startLocal": "18:00", "endLocal": "20:00"}]})
    assert r.status_code == 200
    assert r.json()["openingHours"] == [{"dayOfWeek": 1, "startLocal": "18:00", "endLocal": "20:00"}]

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY, "serviceDuration": 120})
    assert [s["startAtUtc"][11:16] for s in r.json()] == ["18:00"]


async def test_error_responses(client):
    venue_id = await _venue(client)

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": "2030-01-01"})
    assert r.status_code == 400
    assert "detail" in r.json()

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY, "serviceDuration": 10**12})
    assert r.status_code == 400

    r = await client.get(f"{API}/venues/{customer(404)}/slots", params={"from": DAY, "to": DAY})
    assert r.status_code == 404
    assert r.json() == {"detail": "Venue not found"}

    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 1, start="11:00", end="10:00"))
    assert r.status_code == 400

    r = await client.post(f"{API}/venues", json={"name": "Nowhere", "timezone": "Mars/Olympus_Mons"})
    assert r.status_code == 422

    r = await client.post(f"{API}/venues", json={"name": "Bad hours", "openingHours": [{"dayOfWeek": 1, "startLocal": "18:00", "endLocal": "09:00"}]})
    assert r.status_code == 422


async def test_customers_act_only_for_themselves(client):
    venue_id = await _venue(client)
    me = customer(7)
    headers = token_for(me, ["slots:read", "holds:write", "bookings:write", "bookings:read"])

    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 8), headers=headers)
    assert r.status_code == 403

    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 7), headers=headers)
    assert r.status_code == 201

    r = await client.post(f"{API}/venues", json={"name": "Mine"}, headers=headers)
    assert r.status_code == 403

    r = await client.get(f"{API}/bookings", headers=headers)
    assert r.json() == []


async def test_deactivated_venue_is_not_bookable(client):
    venue_id = await _venue(client)
    r = await client.put(f"{API}/venues/{venue_id}/active", json={"isActive": False})
    assert r.status_code == 200
    assert r.json()["isActive"] is False

    r = await client.get(f"{API}/venues/{venue_id}/slots", params={"from": DAY, "to": DAY})
    assert r.status_code == 404
    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 1))
    assert r.status_code == 404

    await client.put(f"{API}/venues/{venue_id}/active", json={"isActive": True})
    r = await client.post(f"{API}/holds", json=_hold_body(venue_id, 1))
    assert r.status_code == 201

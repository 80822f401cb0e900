from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from venuebook.modules.events.outbox import TOPIC, EventOutbox, OutboxService, relay_once
from venuebook.modules.notifications.service import dispatch_booking_confirmed


class RecordingBus:
    def __init__(self):
        self.published = []

    async def publish(self, topic: str, key: str, value: dict) -> None:
        self.published.append((topic, key, value))


class BrokenBus:
    async def publish(self, topic: str, key: str, value: dict) -> None:
        raise ConnectionError("bus unavailable")


async def _enqueue(session, clock, event_type="HOLD_CREATED"):
    ev = await OutboxService(session, now=clock).enqueue(event_type, "hold", "abc", {"venue_id": "v1"})
    await session.commit()
    return ev.id


async def test_relay_publishes_and_marks_sent(session, clock):
    ev_id = await _enqueue(session, clock)
    bus = RecordingBus()

    assert await relay_once(session, bus) == 1
    [(topic, key, envelope)] = bus.published
    assert topic == TOPIC
    assert key == "abc"
    assert envelope["event_type"] == "HOLD_CREATED"
    assert envelope["outbox_id"] == str(ev_id)
    assert envelope["payload"] == {"venue_id": "v1"}

    row = (await session.execute(select(EventOutbox).where(EventOutbox.id == ev_id))).scalar_one()
    assert row.status == "sent"
    # nothing left to claim
    assert await relay_once(session, bus) == 0


async def test_relay_failure_schedules_retry(session, clock):
    ev_id = await _enqueue(session, clock)

    assert await relay_once(session, BrokenBus()) == 1
    row = (await session.execute(select(EventOutbox).where(EventOutbox.id == ev_id))).scalar_one()
    assert row.status == "pending"
    assert row.attempts == 1
    assert "bus unavailable" in row.last_error
    assert row.next_attempt_at > datetime.now(timezone.utc)


class ExplodingNotifier:
    async def booking_confirmed(self, booking: dict) -> None:
        raise RuntimeError("provider down")


async def test_notification_failure_is_contained(caplog):
    await dispatch_booking_confirmed(ExplodingNotifier(), {"id": "b1"})
    assert "notification failed" in caplog.text


def test_registry_picks_bus_from_settings(monkeypatch):
    from venuebook.core.config import settings
    from venuebook.platform.adapters.bus_noop import NoopEventBus
    from venuebook.platform.provider_registry import ProviderRegistry

    ProviderRegistry.reset()
    try:
        assert isinstance(ProviderRegistry.event_bus(), NoopEventBus)

        ProviderRegistry.reset()
        monkeypatch.setattr(settings, "EVENT_BUS_PROVIDER", "redis")
        monkeypatch.setattr(settings, "REDIS_URL", None)
        with pytest.raises(RuntimeError):
            ProviderRegistry.event_bus()
    finally:
        ProviderRegistry.reset()

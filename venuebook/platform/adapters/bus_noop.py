import json
import logging
from venuebook.platform.ports.event_bus import EventBusPort

log = logging.getLogger("bus.noop")

class NoopEventBus(EventBusPort):
    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        log.info("[NOOP BUS] topic=%s key=%s event=%s value=%s", topic, key, value.get("event_type"), json.dumps(value, default=str))

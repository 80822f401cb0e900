from typing import Protocol, runtime_checkable

@runtime_checkable
class EventBusPort(Protocol):
    """Outbound domain events. Delivery is at-least-once; consumers dedupe on outbox_id."""
    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None: ...

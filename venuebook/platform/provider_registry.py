from venuebook.core.config import settings
from venuebook.platform.ports.event_bus import EventBusPort
from venuebook.platform.adapters.bus_noop import NoopEventBus
from venuebook.platform.adapters.bus_redis import RedisEventBus
from venuebook.modules.notifications.service import NotificationDispatcher, LoggingNotificationDispatcher

class ProviderRegistry:
    _event_bus: EventBusPort | None = None
    _notifier: NotificationDispatcher | None = None

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            prov = (settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                cls._event_bus = RedisEventBus()
            else:
                cls._event_bus = NoopEventBus()
        return cls._event_bus

    @classmethod
    def notifier(cls) -> NotificationDispatcher:
        if cls._notifier is None:
            cls._notifier = LoggingNotificationDispatcher()
        return cls._notifier

    @classmethod
    def reset(cls) -> None:
        cls._event_bus = None
        cls._notifier = None

registry = ProviderRegistry()

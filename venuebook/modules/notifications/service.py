import logging
from typing import Protocol, runtime_checkable

log = logging.getLogger("notifications")

@runtime_checkable
class NotificationDispatcher(Protocol):
    async def booking_confirmed(self, booking: dict) -> None: ...

class LoggingNotificationDispatcher(NotificationDispatcher):
    # NOOP delivery: logs the rendered message; swap with a WhatsApp/SMS adapter later
    async def booking_confirmed(self, booking: dict) -> None:
        short_id = str(booking["id"])[:8].upper()
        log.info(
            "[NOTIFY] booking_confirmed customer=%s venue=%s start=%s message=%r",
            booking["customer_id"], booking["venue_id"], booking["start_at_utc"],
            f"Your booking is confirmed for {booking['start_at_utc']}. Your booking ID: {short_id}",
        )

async def dispatch_booking_confirmed(notifier: NotificationDispatcher, booking: dict) -> None:
    """Runs after commit; a failed notification never touches the booking."""
    try:
        await notifier.booking_confirmed(booking)
    except Exception:
        log.exception("Booking confirmation notification failed for booking_id=%s", booking.get("id"))

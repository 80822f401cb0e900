import uuid
import logging
from datetime import datetime
from typing import Callable, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from venuebook.core.base import utcnow
from venuebook.core.errors import Conflict, NotFound
from venuebook.modules.bookings.models import Booking
from venuebook.modules.bookings.repository import BookingRepository
from venuebook.modules.availability.repository import AvailabilityRepository
from venuebook.modules.availability.service import HOLD_INVALID
from venuebook.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

# administrative edits only; confirmed is the sole busy state
VALID_NEXT = {
    "confirmed": {"cancelled", "completed", "no_show"},
    "cancelled": set(),
    "completed": set(),
    "no_show": set(),
}

def booking_snapshot(b: Booking) -> dict:
    return {
        "id": str(b.id),
        "venue_id": str(b.venue_id),
        "customer_id": str(b.customer_id),
        "start_at_utc": b.start_at_utc.isoformat(),
        "end_at_utc": b.end_at_utc.isoformat(),
        "verification_code": b.verification_code,
    }

class BookingService:
    def __init__(self, session: AsyncSession, now: Callable[[], datetime] = utcnow):
        self.session = session
        self.now = now
        self.bookings = BookingRepository(session)
        self.availability = AvailabilityRepository(session)
        self.outbox = OutboxService(session, now=now)

    async def create_booking(self, *, hold_id: uuid.UUID, customer_id: uuid.UUID, payment_ref: str | None) -> Booking:
        """Promote an active hold into a confirmed booking. Not retried; on failure get a fresh hold."""
        try:
            booking = await self._promote(hold_id, customer_id, payment_ref)
            await self.session.commit()
        except IntegrityError as exc:
            # lost a double-promotion race on booking.hold_id
            await self.session.rollback()
            raise Conflict(HOLD_INVALID) from exc
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Booking %s confirmed from hold %s customer=%s", booking.id, hold_id, customer_id)
        return booking

    async def _promote(self, hold_id: uuid.UUID, customer_id: uuid.UUID, payment_ref: str | None) -> Booking:
        now = self.now()
        hold = await self.availability.get_hold(hold_id, for_update=True)
        if not hold or hold.status != "active" or hold.expires_at_utc <= now or hold.customer_id != customer_id:
            logger.info("Promotion refused for hold %s: %s", hold_id, "missing" if not hold else hold.status)
            raise Conflict(HOLD_INVALID)

        # something may have been injected (offline block, admin booking) since the hold was taken
        busy = await self.availability.list_busy(hold.venue_id, hold.start_at_utc, hold.end_at_utc, now=now, exclude_hold_id=hold.id)
        if busy:
            logger.info("Promotion conflict for hold %s: busy=%s", hold_id, sorted({b.kind for b in busy}))
            raise Conflict(HOLD_INVALID)

        hold.status = "consumed"
        booking = await self.bookings.create(
            venue_id=hold.venue_id,
            customer_id=customer_id,
            start=hold.start_at_utc,
            end=hold.end_at_utc,
            hold_id=hold.id,
            payment_ref=payment_ref,
        )
        await self.outbox.enqueue("HOLD_CONSUMED", "hold", hold.id, {"booking_id": str(booking.id)})
        await self.outbox.enqueue("BOOKING_CONFIRMED", "booking", booking.id, {**booking_snapshot(booking), "hold_id": str(hold.id)})
        return booking

    async def get(self, booking_id: uuid.UUID) -> Booking:
        obj = await self.bookings.get(booking_id)
        if not obj:
            raise NotFound("Booking not found")
        return obj

    async def list(self, *, venue_id: uuid.UUID | None = None, customer_id: uuid.UUID | None = None, status: str | None = None, limit: int = 50, offset: int = 0) -> Sequence[Booking]:
        return await self.bookings.list(venue_id=venue_id, customer_id=customer_id, status=status, limit=limit, offset=offset)

    async def change_status(self, booking_id: uuid.UUID, new_status: str) -> Booking:
        try:
            obj = await self.bookings.get(booking_id, for_update=True)
            if not obj:
                raise NotFound("Booking not found")
            if new_status not in VALID_NEXT.get(obj.status, set()):
                raise Conflict(f"Cannot move booking from {obj.status} to {new_status}")
            old = obj.status
            obj.status = new_status
            await self.outbox.enqueue("BOOKING_STATUS_CHANGED", "booking", obj.id, {"from": old, "to": new_status})
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return obj

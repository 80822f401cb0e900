import uuid
from datetime import datetime
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from venuebook.modules.bookings.models import Booking

def verification_code_for(booking_id: uuid.UUID) -> str:
    # scanned at front of house
    return f"BOOKING:{booking_id}"

class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, *, venue_id: uuid.UUID, customer_id: uuid.UUID, start: datetime, end: datetime, hold_id: uuid.UUID, payment_ref: str | None) -> Booking:
        booking_id = uuid.uuid4()
        obj = Booking(
            id=booking_id,
            venue_id=venue_id,
            customer_id=customer_id,
            start_at_utc=start,
            end_at_utc=end,
            status="confirmed",
            hold_id=hold_id,
            payment_ref=payment_ref,
            verification_code=verification_code_for(booking_id),
        )
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, booking_id: uuid.UUID, *, for_update: bool = False) -> Booking | None:
        q = select(Booking).where(and_(Booking.id == booking_id, Booking.deleted_at.is_(None)))
        if for_update:
            q = q.with_for_update()
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list(self, *, venue_id: uuid.UUID | None = None, customer_id: uuid.UUID | None = None, status: str | None = None, limit: int = 50, offset: int = 0) -> Sequence[Booking]:
        cond = [Booking.deleted_at.is_(None)]
        if venue_id:
            cond.append(Booking.venue_id == venue_id)
        if customer_id:
            cond.append(Booking.customer_id == customer_id)
        if status:
            cond.append(Booking.status == status)
        q = select(Booking).where(and_(*cond)).order_by(Booking.start_at_utc.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

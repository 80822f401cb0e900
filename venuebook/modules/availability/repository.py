import uuid
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, literal, union_all
from sqlalchemy.exc import IntegrityError
from venuebook.modules.availability.models import Hold, SlotLock, OfflineBlock
from venuebook.modules.availability.slots import BusyInterval
from venuebook.modules.bookings.models import Booking

def slot_key(venue_id: uuid.UUID, start: datetime, end: datetime) -> str:
    return f"{venue_id}:{start.isoformat()}:{end.isoformat()}"

class AvailabilityRepository:
    def __init__(self, s: AsyncSession): self.s = s

    # busy intervals
    async def list_busy(self, venue_id: uuid.UUID, start: datetime, end: datetime, now: datetime, exclude_hold_id: uuid.UUID | None = None) -> list[BusyInterval]:
        """Confirmed bookings, live holds and offline blocks intersecting [start, end).

        One UNION ALL round trip on this session, so inside a hold/booking
        transaction it reads at that transaction's isolation.
        """
        booked = select(Booking.start_at_utc.label("start"), Booking.end_at_utc.label("end"), literal("booked").label("kind")).where(
            Booking.venue_id == venue_id,
            Booking.deleted_at.is_(None),
            Booking.status == "confirmed",
            Booking.start_at_utc < end,
            Booking.end_at_utc > start,
        )
        hold_cond = [
            Hold.venue_id == venue_id,
            Hold.deleted_at.is_(None),
            Hold.status == "active",
            Hold.expires_at_utc > now,
            Hold.start_at_utc < end,
            Hold.end_at_utc > start,
        ]
        if exclude_hold_id is not None:
            hold_cond.append(Hold.id != exclude_hold_id)
        held = select(Hold.start_at_utc, Hold.end_at_utc, literal("held")).where(*hold_cond)
        offline = select(OfflineBlock.start_at_utc, OfflineBlock.end_at_utc, literal("offline")).where(
            OfflineBlock.venue_id == venue_id,
            OfflineBlock.deleted_at.is_(None),
            OfflineBlock.start_at_utc < end,
            OfflineBlock.end_at_utc > start,
        )
        res = await self.s.execute(union_all(booked, held, offline))
        return [BusyInterval(r.start, r.end, r.kind) for r in res]

    # holds
    async def get_hold(self, hold_id: uuid.UUID, *, for_update: bool = False) -> Hold | None:
        q = select(Hold).where(Hold.id == hold_id, Hold.deleted_at.is_(None))
        if for_update:
            q = q.with_for_update()
        res = await self.s.execute(q)
        return res.scalar_one_or_none()

    async def find_hold_by_idempotency(self, venue_id: uuid.UUID, customer_id: uuid.UUID, idempotency_key: str) -> Hold | None:
        res = await self.s.execute(select(Hold).where(
            Hold.venue_id == venue_id,
            Hold.customer_id == customer_id,
            Hold.idempotency_key == idempotency_key,
        ))
        return res.scalar_one_or_none()

    async def create_hold(self, *, venue_id: uuid.UUID, customer_id: uuid.UUID, start: datetime, end: datetime, expires_at: datetime, idempotency_key: str) -> Hold:
        obj = Hold(venue_id=venue_id, customer_id=customer_id, start_at_utc=start, end_at_utc=end, status="active", expires_at_utc=expires_at, idempotency_key=idempotency_key)
        self.s.add(obj); await self.s.flush(); return obj

    # slot locks
    async def acquire_slot_lock(self, key: str, expires_at: datetime) -> SlotLock | None:
        """Insert the lock row; None if an unexpired lock for the key already exists.

        On None the session must be rolled back by the caller.
        """
        obj = SlotLock(slot_key=key, expires_at_utc=expires_at)
        self.s.add(obj)
        try:
            await self.s.flush()
        except IntegrityError:
            return None
        return obj

    async def release_slot_lock(self, hold_id: uuid.UUID) -> int:
        res = await self.s.execute(delete(SlotLock).where(SlotLock.hold_id == hold_id))
        return res.rowcount

    # expiry sweep
    async def sweep_expired(self, now: datetime, venue_id: uuid.UUID | None = None) -> tuple[int, int]:
        """Mark lapsed holds expired and drop lapsed slot locks; returns (holds, locks)."""
        q = update(Hold).where(Hold.status == "active", Hold.expires_at_utc <= now).values(status="expired")
        if venue_id is not None:
            q = q.where(Hold.venue_id == venue_id)
        holds = await self.s.execute(q.execution_options(synchronize_session=False))
        locks = await self.s.execute(delete(SlotLock).where(SlotLock.expires_at_utc <= now).execution_options(synchronize_session=False))
        return holds.rowcount, locks.rowcount

import uuid
import logging
from datetime import datetime
from typing import Callable, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from venuebook.core.base import as_utc, utcnow
from venuebook.core.errors import NotFound, ValidationError
from venuebook.modules.venues.models import Venue
from venuebook.modules.venues.repository import VenueRepository, OfflineBlockRepository
from venuebook.modules.venues.schemas import VenueCreate, OfflineBlockCreate, OpeningHoursEntry
from venuebook.modules.availability.models import OfflineBlock
from venuebook.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

def _hours_json(entries: list[OpeningHoursEntry]) -> list[dict]:
    return [e.model_dump() for e in entries]

class VenueService:
    def __init__(self, session: AsyncSession, now: Callable[[], datetime] = utcnow):
        self.session = session
        self.now = now
        self.venues = VenueRepository(session)
        self.blocks = OfflineBlockRepository(session)
        self.outbox = OutboxService(session, now=now)

    async def create_venue(self, payload: VenueCreate) -> Venue:
        obj = await self.venues.create(name=payload.name, timezone=payload.timezone, opening_hours=_hours_json(payload.opening_hours), is_active=True)
        await self.outbox.enqueue("VENUE_CREATED", "venue", obj.id, {"name": obj.name, "timezone": obj.timezone})
        await self.session.commit()
        return obj

    async def get_venue(self, venue_id: uuid.UUID) -> Venue:
        obj = await self.venues.get(venue_id)
        if not obj:
            raise NotFound("Venue not found")
        return obj

    async def update_opening_hours(self, venue_id: uuid.UUID, entries: list[OpeningHoursEntry]) -> Venue:
        venue = await self.get_venue(venue_id)
        await self.venues.update(venue, opening_hours=_hours_json(entries))
        await self.outbox.enqueue("VENUE_HOURS_UPDATED", "venue", venue.id, {"opening_hours": venue.opening_hours})
        await self.session.commit()
        return venue

    async def set_active(self, venue_id: uuid.UUID, is_active: bool) -> Venue:
        """Inactive venues offer no slots and accept no holds; existing holds and bookings are left as they are."""
        venue = await self.get_venue(venue_id)
        await self.venues.update(venue, is_active=is_active)
        await self.outbox.enqueue("VENUE_ACTIVE_CHANGED", "venue", venue.id, {"is_active": is_active})
        await self.session.commit()
        logger.info("Venue %s is_active=%s", venue_id, is_active)
        return venue

    # ---- Offline blocks ----
    # Administrative: no check against existing bookings, that is the caller's call.

    async def create_offline_block(self, venue_id: uuid.UUID, payload: OfflineBlockCreate) -> OfflineBlock:
        start, end = as_utc(payload.start_at_utc), as_utc(payload.end_at_utc)
        if start >= end:
            raise ValidationError("startAtUtc must be before endAtUtc")
        await self.get_venue(venue_id)
        block = await self.blocks.create(venue_id, start=start, end=end, reason=payload.reason)
        await self.outbox.enqueue("OFFLINE_BLOCK_CREATED", "offline_block", block.id, {
            "venue_id": str(venue_id), "start": start.isoformat(), "end": end.isoformat(), "reason": payload.reason,
        })
        await self.session.commit()
        logger.info("Offline block %s created for venue %s [%s, %s)", block.id, venue_id, start, end)
        return block

    async def list_offline_blocks(self, venue_id: uuid.UUID, start: datetime | None = None, end: datetime | None = None) -> Sequence[OfflineBlock]:
        await self.get_venue(venue_id)
        return await self.blocks.list(venue_id, start=as_utc(start) if start else None, end=as_utc(end) if end else None)

    async def delete_offline_block(self, venue_id: uuid.UUID, block_id: uuid.UUID) -> None:
        block = await self.blocks.get(venue_id, block_id)
        if not block:
            raise NotFound("Offline block not found")
        await self.blocks.soft_delete(block, self.now())
        await self.outbox.enqueue("OFFLINE_BLOCK_DELETED", "offline_block", block.id, {"venue_id": str(venue_id)})
        await self.session.commit()

import uuid
from datetime import datetime
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from venuebook.modules.venues.models import Venue
from venuebook.modules.availability.models import OfflineBlock

class VenueRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Venue:
        obj = Venue(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, venue_id: uuid.UUID, *, for_update: bool = False) -> Venue | None:
        q = select(Venue).where(and_(Venue.id == venue_id, Venue.deleted_at.is_(None)))
        if for_update:
            # serializes hold creation per venue where the engine supports row locks
            q = q.with_for_update()
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def update(self, venue: Venue, **data) -> Venue:
        for k, v in data.items():
            setattr(venue, k, v)
        await self.session.flush()
        return venue

class OfflineBlockRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, venue_id: uuid.UUID, *, start: datetime, end: datetime, reason: str | None) -> OfflineBlock:
        obj = OfflineBlock(venue_id=venue_id, start_at_utc=start, end_at_utc=end, reason=reason)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, venue_id: uuid.UUID, block_id: uuid.UUID) -> OfflineBlock | None:
        res = await self.session.execute(select(OfflineBlock).where(
            OfflineBlock.id == block_id,
            OfflineBlock.venue_id == venue_id,
            OfflineBlock.deleted_at.is_(None),
        ))
        return res.scalar_one_or_none()

    async def list(self, venue_id: uuid.UUID, *, start: datetime | None = None, end: datetime | None = None) -> Sequence[OfflineBlock]:
        cond = [OfflineBlock.venue_id == venue_id, OfflineBlock.deleted_at.is_(None)]
        if end is not None:
            cond.append(OfflineBlock.start_at_utc < end)
        if start is not None:
            cond.append(OfflineBlock.end_at_utc > start)
        res = await self.session.execute(select(OfflineBlock).where(and_(*cond)).order_by(OfflineBlock.start_at_utc.asc()))
        return res.scalars().all()

    async def soft_delete(self, block: OfflineBlock, at: datetime) -> None:
        block.deleted_at = at
        await self.session.flush()

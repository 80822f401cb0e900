import os
import tempfile
import uuid

# settings and the module-level engine are built at import time
_tmp = tempfile.mkdtemp(prefix="venuebook-tests-")
os.environ["POSTGRES_DSN"] = f"sqlite+aiosqlite:///{_tmp}/app.db"
os.environ["ENV"] = "local"
os.environ["EVENT_BUS_PROVIDER"] = "noop"

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from venuebook.core.base import Base
from venuebook.modules.venues.models import Venue  # noqa: F401
from venuebook.modules.availability.models import Hold, OfflineBlock, SlotLock  # noqa: F401
from venuebook.modules.bookings.models import Booking  # noqa: F401
from venuebook.modules.events.outbox import EventOutbox  # noqa: F401
from venuebook.modules.venues.schemas import VenueCreate, VenueOut
from venuebook.modules.venues.service import VenueService

# Monday
DAY = datetime(2026, 3, 2, tzinfo=timezone.utc)

def at(hour: int, minute: int = 0, day: datetime = DAY) -> datetime:
    return day.replace(hour=hour, minute=minute)

def customer(n: int) -> uuid.UUID:
    return uuid.UUID(int=n)

class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(at(8))

@pytest.fixture
async def venue(session, clock):
    """UTC venue open 09:00-17:00 every day.

    Returned as a plain snapshot: a service rollback expires ORM instances and
    async sessions cannot lazy-load them back.
    """
    payload = VenueCreate(
        name="Court 1",
        timezone="UTC",
        opening_hours=[{"dayOfWeek": d, "startLocal": "09:00", "endLocal": "17:00"} for d in range(7)],
    )
    obj = await VenueService(session, now=clock).create_venue(payload)
    return VenueOut.model_validate(obj)

async def count(session: AsyncSession, model, *where) -> int:
    res = await session.execute(select(func.count()).select_from(model).where(*where))
    return res.scalar_one()

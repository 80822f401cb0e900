import uuid
import logging
from datetime import date, datetime, timedelta
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from venuebook.core.base import as_utc, utcnow
from venuebook.core.config import Settings, settings
from venuebook.core.errors import Conflict, NotFound, ValidationError
from venuebook.modules.availability.models import Hold
from venuebook.modules.availability.opening_hours import resolve_windows
from venuebook.modules.availability.repository import AvailabilityRepository, slot_key
from venuebook.modules.availability.slots import Slot, generate_slots
from venuebook.modules.venues.repository import VenueRepository
from venuebook.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

SLOT_TAKEN = "Slot no longer available"
HOLD_INVALID = "Hold invalid or expired"

# no opening window is longer than a day ("00:00"-"24:00")
MAX_SERVICE_MINUTES = 24 * 60

class AvailabilityService:
    def __init__(self, s: AsyncSession, now: Callable[[], datetime] = utcnow, config: Settings = settings):
        self.s = s
        self.now = now
        self.config = config
        self.repo = AvailabilityRepository(s)
        self.venues = VenueRepository(s)
        self.outbox = OutboxService(s, now=now)

    async def _bookable_venue(self, venue_id: uuid.UUID, *, for_update: bool = False):
        # an inactive venue is invisible to the slot engine
        venue = await self.venues.get(venue_id, for_update=for_update)
        if not venue or not venue.is_active:
            raise NotFound("Venue not found")
        return venue

    # ---- Slot search (read-only) ----

    async def search_slots(self, venue_id: uuid.UUID, date_from: date, date_to: date, service_duration: int) -> list[Slot]:
        if service_duration <= 0:
            raise ValidationError("serviceDuration must be positive")
        if service_duration > MAX_SERVICE_MINUTES:
            raise ValidationError(f"serviceDuration must be at most {MAX_SERVICE_MINUTES} minutes")
        if date_to < date_from:
            raise ValidationError("'to' must not be before 'from'")
        if (date_to - date_from).days + 1 > self.config.SLOTS_MAX_RANGE_DAYS:
            raise ValidationError(f"date range exceeds {self.config.SLOTS_MAX_RANGE_DAYS} days")
        venue = await self._bookable_venue(venue_id)

        windows = resolve_windows(venue.timezone, venue.opening_hours or [], date_from, date_to, self.config.UNCONFIGURED_DAY_POLICY)
        if not windows:
            return []
        # one busy fetch for the whole span, not one per window
        busy = await self.repo.list_busy(venue.id, windows[0][0], max(e for _, e in windows), now=self.now())
        return generate_slots(windows, busy, service_duration, self.config.SLOT_STEP_MINUTES)

    # ---- Holds ----

    async def create_hold(self, *, venue_id: uuid.UUID, start: datetime, end: datetime, customer_id: uuid.UUID, idempotency_key: str) -> Hold:
        hold, _ = await self.create_or_replay_hold(
            venue_id=venue_id, start=start, end=end, customer_id=customer_id, idempotency_key=idempotency_key,
        )
        return hold

    async def create_or_replay_hold(self, *, venue_id: uuid.UUID, start: datetime, end: datetime, customer_id: uuid.UUID, idempotency_key: str) -> tuple[Hold, bool]:
        """Like create_hold, also telling whether the hold is new (False on an idempotent replay)."""
        start, end = as_utc(start), as_utc(end)
        if start >= end:
            raise ValidationError("startAtUtc must be before endAtUtc")
        try:
            hold, created = await self._create_hold_tx(venue_id, start, end, customer_id, idempotency_key)
            await self.s.commit()
        except (IntegrityError, Conflict) as exc:
            # a concurrent retry with the same key may have committed first
            await self.s.rollback()
            existing = await self.repo.find_hold_by_idempotency(venue_id, customer_id, idempotency_key)
            if existing is None:
                raise Conflict(SLOT_TAKEN) from exc
            return existing, False
        except Exception:
            await self.s.rollback()
            raise
        if created:
            logger.info("Hold %s created venue=%s customer=%s [%s, %s)", hold.id, venue_id, customer_id, start, end)
        return hold, created

    async def _create_hold_tx(self, venue_id: uuid.UUID, start: datetime, end: datetime, customer_id: uuid.UUID, idempotency_key: str) -> tuple[Hold, bool]:
        await self._bookable_venue(venue_id, for_update=True)

        existing = await self.repo.find_hold_by_idempotency(venue_id, customer_id, idempotency_key)
        if existing:
            logger.debug("Idempotent replay of hold %s (key=%s)", existing.id, idempotency_key)
            return existing, False

        now = self.now()
        await self.repo.sweep_expired(now, venue_id=venue_id)

        # exact-interval exclusion; outlives the hold on purpose and is never released on success
        lock = await self.repo.acquire_slot_lock(slot_key(venue_id, start, end), now + timedelta(seconds=self.config.SLOT_LOCK_TTL_SECONDS))
        if lock is None:
            logger.info("Hold conflict venue=%s [%s, %s): slot lock taken", venue_id, start, end)
            raise Conflict(SLOT_TAKEN)

        # partial overlaps are only caught here
        busy = await self.repo.list_busy(venue_id, start, end, now=now)
        if busy:
            logger.info("Hold conflict venue=%s [%s, %s): busy=%s", venue_id, start, end, sorted({b.kind for b in busy}))
            raise Conflict(SLOT_TAKEN)

        hold = await self.repo.create_hold(
            venue_id=venue_id, customer_id=customer_id, start=start, end=end,
            expires_at=now + timedelta(seconds=self.config.HOLD_TTL_SECONDS), idempotency_key=idempotency_key,
        )
        lock.hold_id = hold.id
        await self.s.flush()
        await self.outbox.enqueue("HOLD_CREATED", "hold", hold.id, {
            "venue_id": str(venue_id), "customer_id": str(customer_id),
            "start": start.isoformat(), "end": end.isoformat(), "expires_at": hold.expires_at_utc.isoformat(),
        })
        return hold, True

    async def get_hold(self, hold_id: uuid.UUID) -> Hold:
        hold = await self.repo.get_hold(hold_id)
        if not hold:
            raise NotFound("Hold not found")
        return hold

    async def cancel_hold(self, hold_id: uuid.UUID, customer_id: uuid.UUID) -> Hold:
        try:
            hold = await self.repo.get_hold(hold_id, for_update=True)
            if not hold:
                raise NotFound("Hold not found")
            if hold.customer_id != customer_id or hold.status != "active" or hold.expires_at_utc <= self.now():
                raise Conflict(HOLD_INVALID)
            hold.status = "expired"
            await self.repo.release_slot_lock(hold.id)
            await self.outbox.enqueue("HOLD_CANCELLED", "hold", hold.id, {"venue_id": str(hold.venue_id), "customer_id": str(customer_id)})
            await self.s.commit()
        except Exception:
            await self.s.rollback()
            raise
        logger.info("Hold %s cancelled by customer=%s", hold_id, customer_id)
        return hold

    async def sweep_expired(self) -> tuple[int, int]:
        holds, locks = await self.repo.sweep_expired(self.now())
        await self.s.commit()
        if holds or locks:
            logger.debug("Expiry sweep: %d holds expired, %d slot locks removed", holds, locks)
        return holds, locks

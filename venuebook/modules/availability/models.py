import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, ForeignKey, Index, UniqueConstraint
from venuebook.core.base import Base, TimestampedMixin, UTCDateTime

HOLD_STATUSES = ("active", "consumed", "expired")

# Short-lived exclusive claim on an interval, promoted to a booking or left to expire
class Hold(Base, TimestampedMixin):
    venue_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("venue.id"), index=True)
    customer_id: Mapped[uuid.UUID] = mapped_column()
    start_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    end_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    status: Mapped[str] = mapped_column(String(16), default="active", index=True)  # active | consumed | expired
    expires_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    idempotency_key: Mapped[str] = mapped_column(String(128))

    __table_args__ = (
        UniqueConstraint("venue_id", "customer_id", "idempotency_key", name="uq_hold_idempotency"),
        Index("ix_hold_venue_interval_status", "venue_id", "start_at_utc", "end_at_utc", "status"),
    )

class OfflineBlock(Base, TimestampedMixin):
    venue_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("venue.id"), index=True)
    start_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    end_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_offlineblock_venue_interval", "venue_id", "start_at_utc", "end_at_utc"),
    )

# Mutual exclusion for one exact (venue, start, end) during hold creation
class SlotLock(Base, TimestampedMixin):
    slot_key: Mapped[str] = mapped_column(String(160), unique=True)
    expires_at_utc: Mapped[datetime] = mapped_column(UTCDateTime(), index=True)
    hold_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("hold.id"), nullable=True)

import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, ForeignKey, Index
from venuebook.core.base import Base, TimestampedMixin, UTCDateTime

class Booking(Base, TimestampedMixin):
    venue_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("venue.id"), index=True)
    customer_id: Mapped[uuid.UUID] = mapped_column(index=True)
    start_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    end_at_utc: Mapped[datetime] = mapped_column(UTCDateTime())
    status: Mapped[str] = mapped_column(String(24), default="confirmed")  # confirmed, cancelled, completed, no_show
    # one booking per hold; a second promotion of the same hold fails on this
    hold_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("hold.id"), unique=True)
    payment_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)
    verification_code: Mapped[str] = mapped_column(String(96))

    __table_args__ = (
        Index("ix_booking_venue_interval_status", "venue_id", "start_at_utc", "end_at_utc", "status"),
    )

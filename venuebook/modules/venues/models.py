from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, JSON, Boolean
from venuebook.core.base import Base, TimestampedMixin

class Venue(Base, TimestampedMixin):
    name: Mapped[str] = mapped_column(String(120))
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")  # IANA name
    # [{"day_of_week": 0..6 (0=Sun), "start_local": "09:00", "end_local": "17:00"}, ...]
    opening_hours: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

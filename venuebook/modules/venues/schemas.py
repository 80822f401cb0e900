import uuid
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from typing import Annotated
from pydantic import AfterValidator, Field, model_validator
from venuebook.core.schemas import CamelModel
from venuebook.modules.availability.opening_hours import minutes_of_day

HHMM = r"^\d{2}:[0-5]\d$"

class OpeningHoursEntry(CamelModel):
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    start_local: str = Field(pattern=HHMM)
    end_local: str = Field(pattern=HHMM)  # "24:00" allowed

    @model_validator(mode="after")
    def _ordered(self):
        start, end = minutes_of_day(self.start_local), minutes_of_day(self.end_local)
        if start >= 24 * 60 or end > 24 * 60:
            raise ValueError("times must be within 00:00-24:00")
        if end <= start:
            raise ValueError("endLocal must be after startLocal")
        return self

def _check_timezone(v: str) -> str:
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"unknown timezone: {v}")
    return v

Timezone = Annotated[str, AfterValidator(_check_timezone)]

class VenueCreate(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    timezone: Timezone = "UTC"
    opening_hours: list[OpeningHoursEntry] = []

class OpeningHoursUpdate(CamelModel):
    opening_hours: list[OpeningHoursEntry]

class VenueActiveUpdate(CamelModel):
    is_active: bool

class VenueOut(CamelModel):
    id: uuid.UUID
    name: str
    timezone: str
    opening_hours: list[OpeningHoursEntry]
    is_active: bool
    created_at: datetime | None = None

class OfflineBlockCreate(CamelModel):
    start_at_utc: datetime
    end_at_utc: datetime
    reason: str | None = Field(default=None, max_length=255)

class OfflineBlockOut(CamelModel):
    id: uuid.UUID
    venue_id: uuid.UUID
    start_at_utc: datetime
    end_at_utc: datetime
    reason: str | None = None
    created_at: datetime | None = None

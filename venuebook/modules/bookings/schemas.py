import uuid
from datetime import datetime
from typing import Literal
from pydantic import Field
from venuebook.core.schemas import CamelModel

BookingStatus = Literal["confirmed", "cancelled", "completed", "no_show"]

class BookingCreate(CamelModel):
    hold_id: uuid.UUID
    customer_id: uuid.UUID
    payment_ref: str | None = Field(default=None, max_length=128)  # opaque

class BookingStatusChange(CamelModel):
    status: BookingStatus

class BookingOut(CamelModel):
    id: uuid.UUID
    venue_id: uuid.UUID
    customer_id: uuid.UUID
    start_at_utc: datetime
    end_at_utc: datetime
    status: str
    hold_id: uuid.UUID
    payment_ref: str | None = None
    verification_code: str
    created_at: datetime | None = None

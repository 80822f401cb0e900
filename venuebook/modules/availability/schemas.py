import uuid
from datetime import datetime
from typing import Literal
from pydantic import Field
from venuebook.core.schemas import CamelModel

class SlotOut(CamelModel):
    start_at_utc: datetime
    end_at_utc: datetime
    state: Literal["available"] = "available"

class HoldCreate(CamelModel):
    venue_id: uuid.UUID
    start_at_utc: datetime
    end_at_utc: datetime
    customer_id: uuid.UUID
    idempotency_key: str = Field(min_length=1, max_length=128)

class HoldCancel(CamelModel):
    customer_id: uuid.UUID

class HoldOut(CamelModel):
    id: uuid.UUID
    venue_id: uuid.UUID
    customer_id: uuid.UUID
    start_at_utc: datetime
    end_at_utc: datetime
    status: str
    expires_at_utc: datetime
    idempotency_key: str

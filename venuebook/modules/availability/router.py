import uuid
from datetime import date
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from venuebook.core.db import get_session
from venuebook.core.security import Principal, get_principal, require_scopes, ensure_acting_for
from venuebook.modules.availability.service import AvailabilityService
from venuebook.modules.availability.schemas import SlotOut, HoldCreate, HoldCancel, HoldOut

router = APIRouter()

def svc(s: AsyncSession = Depends(get_session)) -> AvailabilityService:
    return AvailabilityService(s)

# Slot search
@router.get("/venues/{venue_id}/slots", response_model=list[SlotOut], dependencies=[Depends(require_scopes("slots:read"))])
async def search_slots(
    venue_id: uuid.UUID,
    date_from: date = Query(alias="from"),
    date_to: date = Query(alias="to"),
    service_duration: int = Query(default=60, alias="serviceDuration"),
    service: AvailabilityService = Depends(svc),
):
    slots = await service.search_slots(venue_id, date_from, date_to, service_duration)
    return [SlotOut(start_at_utc=s.start, end_at_utc=s.end) for s in slots]

# Hold
@router.post("/holds", response_model=HoldOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("holds:write"))])
async def create_hold(payload: HoldCreate, response: Response, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    ensure_acting_for(principal, payload.customer_id)
    hold, created = await service.create_or_replay_hold(
        venue_id=payload.venue_id,
        start=payload.start_at_utc,
        end=payload.end_at_utc,
        customer_id=payload.customer_id,
        idempotency_key=payload.idempotency_key,
    )
    if not created:
        # replay of an earlier request: nothing new was created
        response.status_code = status.HTTP_200_OK
    return hold

@router.get("/holds/{hold_id}", response_model=HoldOut, dependencies=[Depends(require_scopes("holds:write"))])
async def get_hold(hold_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    hold = await service.get_hold(hold_id)
    ensure_acting_for(principal, hold.customer_id)
    return hold

@router.post("/holds/{hold_id}/cancel", response_model=HoldOut, dependencies=[Depends(require_scopes("holds:write"))])
async def cancel_hold(hold_id: uuid.UUID, payload: HoldCancel, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    ensure_acting_for(principal, payload.customer_id)
    return await service.cancel_hold(hold_id, payload.customer_id)

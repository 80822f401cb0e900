import uuid
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from venuebook.core.db import get_session
from venuebook.core.security import require_scopes
from venuebook.modules.venues.service import VenueService
from venuebook.modules.venues.schemas import VenueCreate, VenueOut, OpeningHoursUpdate, VenueActiveUpdate, OfflineBlockCreate, OfflineBlockOut

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> VenueService:
    return VenueService(session)

@router.post("/venues", response_model=VenueOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("venues:admin"))])
async def create_venue(payload: VenueCreate, service: VenueService = Depends(svc)):
    return await service.create_venue(payload)

@router.get("/venues/{venue_id}", response_model=VenueOut, dependencies=[Depends(require_scopes("slots:read"))])
async def get_venue(venue_id: uuid.UUID, service: VenueService = Depends(svc)):
    return await service.get_venue(venue_id)

@router.put("/venues/{venue_id}/opening-hours", response_model=VenueOut, dependencies=[Depends(require_scopes("venues:admin"))])
async def update_opening_hours(venue_id: uuid.UUID, payload: OpeningHoursUpdate, service: VenueService = Depends(svc)):
    return await service.update_opening_hours(venue_id, payload.opening_hours)

@router.put("/venues/{venue_id}/active", response_model=VenueOut, dependencies=[Depends(require_scopes("venues:admin"))])
async def set_venue_active(venue_id: uuid.UUID, payload: VenueActiveUpdate, service: VenueService = Depends(svc)):
    return await service.set_active(venue_id, payload.is_active)

# ---- Offline blocks ----

@router.post("/venues/{venue_id}/offline", response_model=OfflineBlockOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("venues:admin"))])
async def create_offline_block(venue_id: uuid.UUID, payload: OfflineBlockCreate, service: VenueService = Depends(svc)):
    return await service.create_offline_block(venue_id, payload)

@router.get("/venues/{venue_id}/offline", response_model=list[OfflineBlockOut], dependencies=[Depends(require_scopes("venues:admin"))])
async def list_offline_blocks(
    venue_id: uuid.UUID,
    start: datetime | None = Query(default=None, alias="from"),
    end: datetime | None = Query(default=None, alias="to"),
    service: VenueService = Depends(svc),
):
    return await service.list_offline_blocks(venue_id, start, end)

@router.delete("/venues/{venue_id}/offline/{block_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("venues:admin"))])
async def delete_offline_block(venue_id: uuid.UUID, block_id: uuid.UUID, service: VenueService = Depends(svc)):
    await service.delete_offline_block(venue_id, block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

import uuid
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from venuebook.core.db import get_session
from venuebook.core.security import Principal, get_principal, require_scopes, ensure_acting_for
from venuebook.modules.bookings.service import BookingService, booking_snapshot
from venuebook.modules.bookings.schemas import BookingCreate, BookingStatusChange, BookingOut
from venuebook.modules.notifications.service import dispatch_booking_confirmed
from venuebook.platform.provider_registry import registry

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> BookingService:
    return BookingService(session)

@router.post("/bookings", response_model=BookingOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("bookings:write"))])
async def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(svc),
):
    ensure_acting_for(principal, payload.customer_id)
    booking = await service.create_booking(hold_id=payload.hold_id, customer_id=payload.customer_id, payment_ref=payload.payment_ref)
    # fire-and-forget, runs after the response; never affects the committed booking
    background_tasks.add_task(dispatch_booking_confirmed, registry.notifier(), booking_snapshot(booking))
    return booking

@router.get("/bookings", response_model=list[BookingOut], dependencies=[Depends(require_scopes("bookings:read"))])
async def list_bookings(
    venue_id: uuid.UUID | None = Query(default=None, alias="venueId"),
    customer_id: uuid.UUID | None = Query(default=None, alias="customerId"),
    status: str | None = Query(default=None, pattern="^(confirmed|cancelled|completed|no_show)$"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(svc),
):
    if not principal.is_staff:
        customer_id = principal.user_id
    return await service.list(venue_id=venue_id, customer_id=customer_id, status=status, limit=limit, offset=offset)

@router.get("/bookings/{booking_id}", response_model=BookingOut, dependencies=[Depends(require_scopes("bookings:read"))])
async def get_booking(booking_id: uuid.UUID, principal: Principal = Depends(get_principal), service: BookingService = Depends(svc)):
    obj = await service.get(booking_id)
    ensure_acting_for(principal, obj.customer_id)
    return obj

@router.post("/bookings/{booking_id}/status", response_model=BookingOut, dependencies=[Depends(require_scopes("venues:admin"))])
async def change_booking_status(booking_id: uuid.UUID, payload: BookingStatusChange, service: BookingService = Depends(svc)):
    return await service.change_status(booking_id, payload.status)

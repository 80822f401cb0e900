from fastapi import APIRouter
from venuebook.modules.venues.router import router as venues_router
from venuebook.modules.availability.router import router as availability_router
from venuebook.modules.bookings.router import router as bookings_router

api_router = APIRouter()
api_router.include_router(venues_router, tags=["venues"])
api_router.include_router(availability_router, tags=["availability"])
api_router.include_router(bookings_router, tags=["bookings"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}

from fastapi import APIRouter

# Public: event page, calendar, slots, booking
from app.api.v1.public.events import router as public_events_router

# Admin
from app.api.v1.admin.availabilities import router as availabilities_router
from app.api.v1.admin.events import router as events_router
from app.api.v1.admin.bookings import router as bookings_router
from app.api.v1.admin.dashboard import router as dashboard_router

api_router = APIRouter()

# --- Public ---
api_router.include_router(public_events_router)

# --- Admin ---
api_router.include_router(availabilities_router)
api_router.include_router(events_router)
api_router.include_router(bookings_router)
api_router.include_router(dashboard_router)

from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel, UUID4

T = TypeVar("T")


# Paginated response wrapper: used by all list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str


class SlotConflictError(ErrorResponse):
    """409 body: the slot was taken meanwhile, the client must re-fetch availability."""
    error: str = "slot_conflict"
    refetch: bool = True
    conflicting_booking_id: Optional[UUID4] = None


class SlotUnavailableError(ErrorResponse):
    error: str = "slot_unavailable"


class EventInUseError(ErrorResponse):
    error: str = "event_in_use"
    future_bookings: int


# Admin dashboard
class DashboardStats(BaseModel):
    total_bookings: int
    active_events: int
    booked_hours: float
    today_bookings: int
    upcoming_bookings: int

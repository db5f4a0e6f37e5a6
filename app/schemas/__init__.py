from app.schemas.common import (
    PaginatedResponse, ErrorResponse, SlotConflictError, SlotUnavailableError,
    EventInUseError, DashboardStats,
)
from app.schemas.availability import (
    TimeRange, Availability, AvailabilityCreate, AvailabilityUpdate, AvailabilitySummary,
)
from app.schemas.event import (
    Event, EventCreate, EventUpdate, EventSummary,
    MonthAvailabilityResponse, DaySlotsResponse,
)
from app.schemas.booking import (
    Booking, BookingContact, SlotBookingCreate, AdminBookingCreate, BookingUpdate,
)

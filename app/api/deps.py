from datetime import datetime

from fastapi import HTTPException, status

from app.schemas.common import SlotConflictError, SlotUnavailableError
from app.utils.bookings import BookingConflict


def booking_error_to_http(exc: Exception) -> HTTPException:
    """Map a booking-layer failure to its HTTP response."""
    if isinstance(exc, BookingConflict):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=SlotConflictError(
                message=f"{exc}. Refresh availability and pick another slot",
                conflicting_booking_id=exc.conflicting_booking_id,
            ).model_dump(mode="json"),
        )
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=SlotUnavailableError(message=str(exc)).model_dump(mode="json"),
    )


def month_or_current(year, month, now: datetime):
    """Default the calendar to the current month; reject half-specified months."""
    if year is None and month is None:
        return now.year, now.month
    if year is None or month is None:
        raise HTTPException(status_code=400, detail="year and month must be given together")
    return year, month

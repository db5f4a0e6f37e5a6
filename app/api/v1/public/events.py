from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from app.api.deps import booking_error_to_http, month_or_current
from app.db.session import get_db
from app.models.event import Event
from app.schemas.booking import Booking as BookingSchema, SlotBookingCreate
from app.schemas.common import SlotConflictError, SlotUnavailableError
from app.schemas.event import (
    Event as EventSchema,
    DaySlotsResponse,
    MonthAvailabilityResponse,
)
from app.utils.availability import slot_interval
from app.utils.bookings import (
    BookingConflict,
    SlotUnavailable,
    create_booking,
    event_calendar_days,
    event_day_slots,
)
from app.utils.timezone import local_now

router = APIRouter(prefix="/events", tags=["Booking"])


def _get_public_event(slug: str, db: Session) -> Event:
    event = (
        db.query(Event)
        .options(joinedload(Event.availability))
        .filter(Event.slug == slug, Event.is_active == True)  # noqa: E712
        .first()
    )
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


# ---------------------------------------------------------------------------
# GET /events/{slug}
# ---------------------------------------------------------------------------


@router.get("/{slug}", response_model=EventSchema)
def get_event(slug: str, db: Session = Depends(get_db)):
    """Public event page: title, duration, location and activation window."""
    return _get_public_event(slug, db)


# ---------------------------------------------------------------------------
# GET /events/{slug}/calendar?year=&month=
# ---------------------------------------------------------------------------


@router.get("/{slug}/calendar", response_model=MonthAvailabilityResponse)
def get_event_calendar(
    slug: str,
    year: int = Query(None, ge=2000, le=2100),
    month: int = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    """
    Days of the displayed month grid that still have at least one free slot.
    The grid spans whole Monday-first weeks, so leading and trailing days of
    the neighbouring months are included.
    """
    event = _get_public_event(slug, db)
    now = local_now()
    year, month = month_or_current(year, month, now)

    return MonthAvailabilityResponse(
        event_id=event.id,
        year=year,
        month=month,
        days=event_calendar_days(db, event, year, month, now),
    )


# ---------------------------------------------------------------------------
# GET /events/{slug}/slots?date=
# ---------------------------------------------------------------------------


@router.get("/{slug}/slots", response_model=DaySlotsResponse)
def get_event_slots(
    slug: str,
    date: date = Query(..., description="Day to list free slots for (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """Free slots for one day, as "HH:MM" start times in chronological order."""
    event = _get_public_event(slug, db)

    return DaySlotsResponse(
        event_id=event.id,
        date=date,
        duration_minutes=event.duration_minutes,
        slots=event_day_slots(db, event, date, local_now()),
    )


# ---------------------------------------------------------------------------
# POST /events/{slug}/bookings
# ---------------------------------------------------------------------------


@router.post(
    "/{slug}/bookings",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": SlotConflictError}, 422: {"model": SlotUnavailableError}},
)
def book_slot(
    slug: str,
    data: SlotBookingCreate,
    db: Session = Depends(get_db),
):
    """
    Book a slot picked from the slots endpoint.

    Availability is checked again inside the insert transaction. If the slot
    was taken in the meantime the response is 409 with `refetch: true`; the
    client should reload the day's slots rather than retry.
    """
    event = _get_public_event(slug, db)
    start, _ = slot_interval(data.slot_date, data.slot_time, event.duration_minutes)
    contact = data.model_dump(include={"user_name", "user_surname", "user_phone", "user_email"})

    try:
        return create_booking(db, event, start, contact, local_now())
    except (BookingConflict, SlotUnavailable) as e:
        raise booking_error_to_http(e)

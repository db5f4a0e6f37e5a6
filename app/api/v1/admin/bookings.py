from uuid import UUID
from typing import Optional
from datetime import datetime, time, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.db.session import get_db
from app.models.booking import Booking
from app.models.event import Event
from app.schemas.booking import (
    Booking as BookingSchema,
    AdminBookingCreate,
    BookingUpdate,
)
from app.schemas.common import PaginatedResponse, SlotConflictError, SlotUnavailableError
from app.api.v1.admin.events import get_event_or_404
from app.api.deps import booking_error_to_http
from app.utils.availability import slot_interval
from app.utils.bookings import BookingConflict, SlotUnavailable, create_booking, update_booking
from app.utils.timezone import local_now

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])

STATUS_FILTERS = ("all", "today", "upcoming", "past")
CONTACT_FIELDS = {"user_name", "user_surname", "user_phone", "user_email"}


def _get_booking(id: UUID, db: Session) -> Booking:
    booking = (
        db.query(Booking)
        .options(joinedload(Booking.event).joinedload(Event.availability))
        .filter(Booking.id == id)
        .first()
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.get("/", response_model=PaginatedResponse[BookingSchema])
def list_all_bookings(
    # --- Filters ---
    search: Optional[str] = Query(None, description="Match name, surname, phone or event title"),
    status: str = Query("all", description="all, today, upcoming or past"),
    event_id: Optional[UUID] = Query(None, description="Only bookings of this event"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Return bookings across every event, most recent start first.

    `status` buckets by start time in the business timezone: `today` is any
    booking starting today, `upcoming` starts after now, `past` started
    before today.
    """
    if status not in STATUS_FILTERS:
        raise HTTPException(status_code=400, detail=f"status must be one of {', '.join(STATUS_FILTERS)}")

    query = (
        db.query(Booking)
        .join(Event, Event.id == Booking.event_id)
        .options(joinedload(Booking.event))
    )

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Booking.user_name.ilike(pattern),
                Booking.user_surname.ilike(pattern),
                Booking.user_phone.ilike(pattern),
                Event.title.ilike(pattern),
            )
        )
    if event_id:
        query = query.filter(Booking.event_id == event_id)

    now = local_now()
    start_of_today = datetime.combine(now.date(), time.min)
    if status == "today":
        query = query.filter(
            Booking.start_time >= start_of_today,
            Booking.start_time < start_of_today + timedelta(days=1),
        )
    elif status == "upcoming":
        query = query.filter(Booking.start_time > now)
    elif status == "past":
        query = query.filter(Booking.start_time < start_of_today)

    total = query.count()
    bookings = (
        query.order_by(Booking.start_time.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[BookingSchema.model_validate(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=BookingSchema)
def get_booking(id: UUID, db: Session = Depends(get_db)):
    return _get_booking(id, db)


@router.post(
    "/",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": SlotConflictError}, 422: {"model": SlotUnavailableError}},
)
def create_manual_booking(
    data: AdminBookingCreate,
    override_rules: bool = Query(False, description="Allow a start outside the offered slots"),
    db: Session = Depends(get_db),
):
    """
    Book on behalf of a customer (phone bookings). Works for inactive events
    too. Overlap with another booking is always refused; `override_rules`
    only lifts the weekly-rule and activation-window checks.
    """
    event = get_event_or_404(data.event_id, db)
    start, _ = slot_interval(data.slot_date, data.slot_time, event.duration_minutes)

    try:
        return create_booking(
            db, event, start, data.model_dump(include=CONTACT_FIELDS), local_now(),
            enforce_rules=not override_rules,
        )
    except (BookingConflict, SlotUnavailable) as e:
        raise booking_error_to_http(e)


@router.patch(
    "/{id}",
    response_model=BookingSchema,
    responses={409: {"model": SlotConflictError}, 422: {"model": SlotUnavailableError}},
)
def edit_booking(
    id: UUID,
    data: BookingUpdate,
    override_rules: bool = Query(False, description="Allow a start outside the offered slots"),
    db: Session = Depends(get_db),
):
    """
    Edit contact details and/or move a booking. A new `start_time` is checked
    against the event's other bookings (never against itself) and `end_time`
    is recomputed from the event duration.
    """
    booking = _get_booking(id, db)
    # Only email is nullable; an explicit null elsewhere means "leave as is"
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field == "user_email"
    }

    try:
        return update_booking(
            db, booking, changes, local_now(),
            enforce_rules=not override_rules,
        )
    except (BookingConflict, SlotUnavailable) as e:
        raise booking_error_to_http(e)


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_booking(id: UUID, db: Session = Depends(get_db)):
    """Delete a booking; its slot becomes available again."""
    booking = _get_booking(id, db)
    db.delete(booking)
    db.commit()
    return {"id": str(id), "message": "Booking deleted."}

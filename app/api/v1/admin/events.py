from uuid import UUID
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.db.session import get_db
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.event import Event
from app.schemas.common import PaginatedResponse, EventInUseError
from app.schemas.event import (
    Event as EventSchema,
    EventCreate,
    EventUpdate,
    DaySlotsResponse,
    MonthAvailabilityResponse,
    DATE_BOUNDED_TYPES,
)
from app.api.deps import month_or_current
from app.utils.bookings import event_calendar_days, event_day_slots
from app.utils.slug import make_unique_slug
from app.utils.timezone import local_now

router = APIRouter(prefix="/admin/events", tags=["Admin - Events"])

CLEARABLE_FIELDS = {"description", "location", "start_date"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_event_or_404(id: UUID, db: Session) -> Event:
    event = (
        db.query(Event)
        .options(joinedload(Event.availability))
        .filter(Event.id == id)
        .first()
    )
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _ensure_availability(availability_id: UUID, db: Session) -> None:
    if not db.query(Availability.id).filter(Availability.id == availability_id).first():
        raise HTTPException(status_code=404, detail="Availability not found")


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[EventSchema])
def list_events(
    search: Optional[str] = Query(None, description="Match title or slug (case-insensitive)"),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Event).options(joinedload(Event.availability))
    if not include_inactive:
        query = query.filter(Event.is_active == True)  # noqa: E712
    if search:
        query = query.filter(or_(Event.title.ilike(f"%{search}%"), Event.slug.ilike(f"%{search}%")))

    total = query.count()
    events = (
        query.order_by(Event.created_at.desc(), Event.title)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[EventSchema.model_validate(e) for e in events],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=EventSchema)
def get_event(id: UUID, db: Session = Depends(get_db)):
    return get_event_or_404(id, db)


@router.post("/", response_model=EventSchema, status_code=status.HTTP_201_CREATED)
def create_event(data: EventCreate, db: Session = Depends(get_db)):
    """Create an event. The public booking URL is /book/{slug}, derived from the title."""
    _ensure_availability(data.availability_id, db)

    event = Event(slug=make_unique_slug(db, data.title), **data.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@router.patch("/{id}", response_model=EventSchema)
def update_event(id: UUID, data: EventUpdate, db: Session = Depends(get_db)):
    """
    Partial update. Changing duration or rules affects only future slot
    computation; bookings already stored keep their times.
    """
    event = get_event_or_404(id, db)
    # Only these columns are nullable; an explicit null elsewhere means "leave as is"
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in CLEARABLE_FIELDS
    }

    if changes.get("availability_id"):
        _ensure_availability(changes["availability_id"], db)

    for field, value in changes.items():
        setattr(event, field, value)

    if event.event_type in DATE_BOUNDED_TYPES and event.start_date is None:
        db.rollback()
        raise HTTPException(
            status_code=422,
            detail=f"start_date is required for {event.event_type.value} events",
        )

    db.commit()
    db.refresh(event)
    return event


@router.delete(
    "/{id}",
    status_code=status.HTTP_200_OK,
    responses={409: {"model": EventInUseError}},
)
def delete_event(
    id: UUID,
    force: bool = Query(False, description="Deactivate even if future bookings exist"),
    db: Session = Depends(get_db),
):
    """
    Soft-delete an event (it disappears from the public booking page).

    Refused with 409 while future bookings reference the event, unless
    `force=true`. Bookings are never deleted with their event.
    """
    event = get_event_or_404(id, db)

    future_bookings = (
        db.query(Booking.id)
        .filter(Booking.event_id == id, Booking.start_time >= local_now())
        .count()
    )
    if future_bookings and not force:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=EventInUseError(
                message=f"Event has {future_bookings} upcoming booking(s); pass force=true to deactivate anyway",
                future_bookings=future_bookings,
            ).model_dump(),
        )

    event.is_active = False
    db.commit()
    return {
        "id": str(id),
        "is_active": False,
        "future_bookings": future_bookings,
        "message": "Event deactivated. Existing bookings are kept.",
    }


# ---------------------------------------------------------------------------
# Manual booking tool: same engine as the public page
# ---------------------------------------------------------------------------


@router.get("/{id}/calendar", response_model=MonthAvailabilityResponse)
def get_event_calendar(
    id: UUID,
    year: int = Query(None, ge=2000, le=2100),
    month: int = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    event = get_event_or_404(id, db)
    now = local_now()
    year, month = month_or_current(year, month, now)

    return MonthAvailabilityResponse(
        event_id=event.id,
        year=year,
        month=month,
        days=event_calendar_days(db, event, year, month, now),
    )


@router.get("/{id}/slots", response_model=DaySlotsResponse)
def get_event_slots(
    id: UUID,
    date: date = Query(..., description="Day to list free slots for (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    event = get_event_or_404(id, db)

    return DaySlotsResponse(
        event_id=event.id,
        date=date,
        duration_minutes=event.duration_minutes,
        slots=event_day_slots(db, event, date, local_now()),
    )

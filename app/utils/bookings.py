import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.booking import Booking, NO_OVERLAP_CONSTRAINT
from app.models.event import Event
from app.utils.availability import (
    days_with_availability,
    is_slot_available,
    month_grid,
    slots_for_day,
)

logger = logging.getLogger(__name__)


class BookingConflict(Exception):
    """The requested interval overlaps a booking already stored for the event."""

    def __init__(self, message: str, conflicting_booking_id: Optional[UUID] = None):
        super().__init__(message)
        self.conflicting_booking_id = conflicting_booking_id


class SlotUnavailable(Exception):
    """The requested start is not a slot the event currently offers."""


# ---------------------------------------------------------------------------
# Queries feeding the availability engine
# ---------------------------------------------------------------------------


def bookings_between(
    db: Session,
    event_id: UUID,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[UUID] = None,
) -> List[Booking]:
    """Bookings of an event intersecting [start, end)."""
    query = db.query(Booking).filter(
        Booking.event_id == event_id,
        Booking.start_time < end,
        Booking.end_time > start,
    )
    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)
    return query.order_by(Booking.start_time).all()


def _day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def event_day_slots(db: Session, event: Event, day: date, now: datetime) -> List[str]:
    """Free "HH:MM" slots of one day for an event."""
    day_start, day_end = _day_bounds(day)
    bookings = bookings_between(db, event.id, day_start, day_end)
    return slots_for_day(day, event, event.availability.rules, bookings, now)


def event_calendar_days(db: Session, event: Event, year: int, month: int, now: datetime) -> List[date]:
    """Days of the month grid with at least one free slot for an event."""
    grid = month_grid(year, month)
    bookings = bookings_between(
        db,
        event.id,
        datetime.combine(grid[0], time.min),
        datetime.combine(grid[-1] + timedelta(days=1), time.min),
    )
    return days_with_availability(year, month, event, event.availability.rules, bookings, now)


# ---------------------------------------------------------------------------
# Booking submission: the authoritative overlap check
# ---------------------------------------------------------------------------


def _lock_event(db: Session, event_id: UUID) -> Event:
    """Serialise concurrent submissions for one event (row lock on PostgreSQL)."""
    return db.query(Event).filter(Event.id == event_id).with_for_update().one()


def _check_bookable(
    db: Session,
    event: Event,
    start: datetime,
    now: datetime,
    enforce_rules: bool,
    exclude_booking_id: Optional[UUID] = None,
) -> datetime:
    """Return the end of the interval starting at ``start`` or raise why it cannot be booked."""
    end = start + timedelta(minutes=event.duration_minutes)

    clashes = bookings_between(db, event.id, start, end, exclude_booking_id)
    if clashes:
        logger.warning(
            "Booking conflict on event %s at %s (existing booking %s)",
            event.id, start, clashes[0].id,
        )
        raise BookingConflict(
            f"The slot {start:%Y-%m-%d %H:%M} is already booked",
            conflicting_booking_id=clashes[0].id,
        )

    if enforce_rules:
        day_start, day_end = _day_bounds(start.date())
        others = bookings_between(db, event.id, day_start, day_end, exclude_booking_id)
        if not is_slot_available(start, event, event.availability.rules, others, now):
            raise SlotUnavailable(f"{start:%Y-%m-%d %H:%M} is not an available slot for this event")

    return end


def _commit(db: Session, booking: Booking) -> Booking:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if NO_OVERLAP_CONSTRAINT in str(e.orig):
            logger.warning("Exclusion constraint rejected booking for event %s", booking.event_id)
            raise BookingConflict("The slot was just booked by someone else") from e
        raise
    db.refresh(booking)
    return booking


def create_booking(
    db: Session,
    event: Event,
    start: datetime,
    contact: Dict[str, Any],
    now: datetime,
    enforce_rules: bool = True,
) -> Booking:
    """
    Insert a booking for ``event`` starting at ``start``.

    The event row is locked and the overlap check repeated inside the
    transaction, so two clients that both saw the slot as free cannot both
    book it. With ``enforce_rules`` the start must also be one of the slots
    the availability engine offers.

    Raises BookingConflict or SlotUnavailable.
    """
    try:
        locked = _lock_event(db, event.id)
        end = _check_bookable(db, locked, start, now, enforce_rules)
    except (BookingConflict, SlotUnavailable):
        db.rollback()
        raise

    booking = Booking(event_id=event.id, start_time=start, end_time=end, **contact)
    db.add(booking)
    _commit(db, booking)
    logger.info("Created booking %s for event %s at %s", booking.id, event.id, start)
    return booking


def update_booking(
    db: Session,
    booking: Booking,
    changes: Dict[str, Any],
    now: datetime,
    enforce_rules: bool = True,
) -> Booking:
    """
    Apply an admin edit to a booking.

    A new ``start_time`` moves the booking: ``end_time`` is recomputed from the
    event duration and the new interval goes through the same checks as a new
    booking, ignoring the booking being edited.
    """
    changes = dict(changes)
    new_start = changes.pop("start_time", None)

    try:
        event = _lock_event(db, booking.event_id)
        if new_start is not None and new_start != booking.start_time:
            end = _check_bookable(db, event, new_start, now, enforce_rules, exclude_booking_id=booking.id)
            booking.start_time = new_start
            booking.end_time = end
    except (BookingConflict, SlotUnavailable):
        db.rollback()
        raise

    for field, value in changes.items():
        setattr(booking, field, value)

    _commit(db, booking)
    logger.info("Updated booking %s", booking.id)
    return booking

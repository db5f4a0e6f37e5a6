from datetime import datetime, time, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.booking import Booking
from app.models.event import Event
from app.schemas.common import DashboardStats
from app.utils.timezone import local_now

router = APIRouter(prefix="/admin/dashboard", tags=["Admin - Dashboard"])


@router.get("/", response_model=DashboardStats)
def get_dashboard_stats(db: Session = Depends(get_db)):
    """Headline numbers for the admin home page."""
    now = local_now()
    start_of_today = datetime.combine(now.date(), time.min)

    total_bookings = db.query(func.count(Booking.id)).scalar() or 0
    active_events = (
        db.query(func.count(Event.id)).filter(Event.is_active == True).scalar() or 0  # noqa: E712
    )
    # Bookings always span exactly their event's duration
    booked_minutes = (
        db.query(func.sum(Event.duration_minutes))
        .join(Booking, Booking.event_id == Event.id)
        .scalar()
        or 0
    )
    today_bookings = (
        db.query(func.count(Booking.id))
        .filter(
            Booking.start_time >= start_of_today,
            Booking.start_time < start_of_today + timedelta(days=1),
        )
        .scalar()
        or 0
    )
    upcoming_bookings = (
        db.query(func.count(Booking.id)).filter(Booking.start_time > now).scalar() or 0
    )

    return DashboardStats(
        total_bookings=total_bookings,
        active_events=active_events,
        booked_hours=round(booked_minutes / 60, 2),
        today_bookings=today_bookings,
        upcoming_bookings=upcoming_bookings,
    )

from typing import Optional
from datetime import date, datetime

from pydantic import BaseModel, Field, UUID4, model_validator

from app.models.event import EventType
from app.schemas.availability import AvailabilitySummary

DATE_BOUNDED_TYPES = (EventType.recurring_from, EventType.single_week)


# Event: Create (POST /admin/events)
class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: int = Field(gt=0, le=24 * 60)
    event_type: EventType = EventType.always
    start_date: Optional[date] = None
    availability_id: UUID4

    @model_validator(mode="after")
    def require_start_date(self):
        if self.event_type in DATE_BOUNDED_TYPES and self.start_date is None:
            raise ValueError(f"start_date is required for {self.event_type.value} events")
        return self


# Event: Update (PATCH /admin/events/{id}); cross-field checks run against
# the merged row in the route
class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=24 * 60)
    event_type: Optional[EventType] = None
    start_date: Optional[date] = None
    availability_id: Optional[UUID4] = None
    is_active: Optional[bool] = None


# Event: DB response
class Event(BaseModel):
    id: UUID4
    title: str
    slug: str
    description: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: int
    event_type: EventType
    start_date: Optional[date] = None
    availability_id: UUID4
    is_active: bool = True
    created_at: Optional[datetime] = None
    availability: Optional[AvailabilitySummary] = None

    class Config:
        from_attributes = True


# Compact event for booking responses
class EventSummary(BaseModel):
    id: UUID4
    title: str
    slug: str
    duration_minutes: int
    location: Optional[str] = None

    class Config:
        from_attributes = True


# GET .../calendar: days of the month grid with a free slot
class MonthAvailabilityResponse(BaseModel):
    event_id: UUID4
    year: int
    month: int
    days: list[date]


# GET .../slots: free slots for one day
class DaySlotsResponse(BaseModel):
    event_id: UUID4
    date: date
    duration_minutes: int
    slots: list[str]

from typing import Optional
from datetime import date, datetime, time

from pydantic import BaseModel, EmailStr, Field, UUID4, field_validator

from app.schemas.event import EventSummary
from app.utils.timezone import to_local_naive


# Customer contact fields shared by every booking payload
class BookingContact(BaseModel):
    user_name: str = Field(min_length=1, max_length=100)
    user_surname: str = Field(min_length=1, max_length=100)
    user_phone: str = Field(min_length=3, max_length=30)
    user_email: Optional[EmailStr] = None

    @field_validator("user_email", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


# Booking: Create from a picked slot (POST /events/{slug}/bookings)
class SlotBookingCreate(BookingContact):
    slot_date: date
    slot_time: time  # "HH:MM" as returned by the slots endpoint


# Booking: Manual create by staff (POST /admin/bookings)
class AdminBookingCreate(SlotBookingCreate):
    event_id: UUID4


# Booking: Admin edit (PATCH /admin/bookings/{id})
class BookingUpdate(BaseModel):
    user_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    user_surname: Optional[str] = Field(default=None, min_length=1, max_length=100)
    user_phone: Optional[str] = Field(default=None, min_length=3, max_length=30)
    user_email: Optional[EmailStr] = None
    start_time: Optional[datetime] = None  # end_time follows from the event duration

    @field_validator("user_email", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("start_time")
    @classmethod
    def to_business_time(cls, v):
        if v is None:
            return v
        return to_local_naive(v).replace(second=0, microsecond=0)


# Booking: Full response
class Booking(BaseModel):
    id: UUID4
    event_id: UUID4
    user_name: str
    user_surname: str
    user_phone: str
    user_email: Optional[str] = None
    start_time: datetime
    end_time: datetime
    created_at: Optional[datetime] = None
    event: Optional[EventSummary] = None

    class Config:
        from_attributes = True

import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Date, func, Text, Integer, Enum, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db.session import Base


class EventType(str, enum.Enum):
    always = "always"                   # recurring, no date restriction
    recurring_from = "recurring_from"   # recurring from start_date onwards
    single_week = "single_week"         # start_date .. start_date + 6 days


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="events_duration_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    event_type = Column(Enum(EventType, name="event_type"), nullable=False, default=EventType.always)
    start_date = Column(Date, nullable=True)  # activation date, required unless event_type == always
    availability_id = Column(UUID(as_uuid=True), ForeignKey("availabilities.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    availability = relationship("Availability", back_populates="events")
    bookings = relationship("Booking", back_populates="event")

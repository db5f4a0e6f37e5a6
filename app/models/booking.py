import uuid
from sqlalchemy import Column, String, DateTime, func, ForeignKey, Index, DDL, event as sa_event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db.session import Base

# Name of the storage-level guard against double booking; the booking layer
# recognises it in IntegrityError messages.
NO_OVERLAP_CONSTRAINT = "bookings_no_overlap"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_event_start", "event_id", "start_time"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    user_surname = Column(String(100), nullable=False)
    user_phone = Column(String(30), nullable=False)
    user_email = Column(String(255), nullable=True)
    # Naive wall-clock values in settings.TIMEZONE
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    event = relationship("Event", back_populates="bookings")


# PostgreSQL only: no two bookings of one event may share any instant.
# tsrange() defaults to '[)' bounds, the same half-open test the engine uses.
# Mixing uuid equality with range overlap in one gist index needs btree_gist.
BTREE_GIST = DDL("CREATE EXTENSION IF NOT EXISTS btree_gist")
NO_OVERLAP = DDL(
    f"ALTER TABLE bookings ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
    "EXCLUDE USING gist (event_id WITH =, tsrange(start_time, end_time) WITH &&)"
)

sa_event.listen(Booking.__table__, "before_create", BTREE_GIST.execute_if(dialect="postgresql"))
sa_event.listen(Booking.__table__, "after_create", NO_OVERLAP.execute_if(dialect="postgresql"))

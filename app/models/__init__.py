from app.models.availability import Availability
from app.models.event import Event, EventType
from app.models.booking import Booking

from app.db.session import Base
from app.models.availability import Availability
from app.models.event import Event
from app.models.booking import Booking

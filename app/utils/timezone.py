from datetime import datetime
from zoneinfo import ZoneInfo

from app.core.config import settings


def local_now() -> datetime:
    """Current wall-clock time in the business timezone, as a naive value."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None, microsecond=0)


def to_local_naive(value: datetime) -> datetime:
    """
    Normalise a datetime from a client to naive business-local time.

    Browsers serialise timestamps as UTC ISO strings ("...T08:00:00.000Z"),
    which pydantic parses as aware datetimes. Those are shifted into
    settings.TIMEZONE and stripped. Naive values are assumed to already be
    local and are returned unchanged.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)

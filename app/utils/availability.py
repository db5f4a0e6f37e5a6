"""
Slot availability engine.

Pure computation over an event definition, its weekly rule document and the
bookings already taken. No database or clock access happens here: callers
load the data and pass ``now`` explicitly, so every surface (public booking
page, admin manual booking, admin booking edit) gets the same answer.

All dates and times are naive wall-clock values in the business timezone.

The ``event`` argument is anything exposing ``duration_minutes``,
``event_type`` and ``start_date`` (the ORM model or a schema). ``bookings`` is
any iterable of objects exposing ``start_time`` / ``end_time`` and must only
contain bookings of that event.
"""

import calendar
import enum
import logging
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from app.models.event import EventType

logger = logging.getLogger(__name__)

SINGLE_WEEK_DAYS = 7
SLOT_FORMAT = "%H:%M"


class Weekday(str, enum.Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        return _WEEKDAYS[day.weekday()]

    @classmethod
    def parse(cls, label: Any) -> "Weekday":
        """
        Resolve a stored day label to a Weekday.

        Accepts English names and the Italian labels used by the booking UI,
        in any case, with or without accents, abbreviated to three or more
        letters, and in their latin-1 mojibake form ("LunedÃ¬").
        """
        if isinstance(label, cls):
            return label
        if not isinstance(label, str):
            raise ValueError(f"Unknown weekday: {label!r}")

        key = _fold_label(label)
        if len(key) >= 3:
            for name, weekday in _WEEKDAY_NAMES:
                if name.startswith(key):
                    return weekday
        raise ValueError(f"Unknown weekday: {label!r}")


_WEEKDAYS = list(Weekday)

_WEEKDAY_NAMES = [(d.value, d) for d in _WEEKDAYS] + list(zip(
    ["lunedi", "martedi", "mercoledi", "giovedi", "venerdi", "sabato", "domenica"],
    _WEEKDAYS,
))


def _fold_label(label: str) -> str:
    text = label.strip()
    try:
        text = text.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        pass
    text = unicodedata.normalize("NFKD", text)
    return "".join(c for c in text if c.isascii() and c.isalpha()).lower()


@dataclass(frozen=True)
class TimeRange:
    """One open window of a weekday, ``start`` < ``end`` on the same day."""

    start: time
    end: time

    @classmethod
    def parse(cls, raw: Any) -> "TimeRange":
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, Mapping):
            start, end = raw["start"], raw["end"]
        else:
            start, end = raw.start, raw.end
        time_range = cls(parse_time(start), parse_time(end))
        if time_range.start >= time_range.end:
            raise ValueError(f"Empty or inverted range {start}-{end}")
        return time_range


WeeklyRules = Dict[Weekday, List[TimeRange]]


def parse_time(value: Any) -> time:
    """Parse an "HH:MM" (or "HH:MM:SS") wall-clock value."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise TypeError(f"Expected a time string, got {type(value).__name__}")
    for fmt in (SLOT_FORMAT, "%H:%M:%S"):
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time {value!r}, expected HH:MM")


def parse_weekly_rules(document: Optional[Mapping[Any, Any]]) -> WeeklyRules:
    """
    Normalise a stored rule document into ``{Weekday: [TimeRange, ...]}``.

    Range order is preserved. Labels that resolve to the same weekday are
    concatenated. Unknown labels and malformed ranges are logged and skipped
    so that one bad entry never makes a whole day (or month) fail.
    """
    rules: WeeklyRules = {}
    for label, ranges in (document or {}).items():
        try:
            weekday = Weekday.parse(label)
        except ValueError:
            logger.warning("Ignoring rules for unknown weekday %r", label)
            continue

        parsed = rules.setdefault(weekday, [])
        for raw in ranges or []:
            try:
                parsed.append(TimeRange.parse(raw))
            except (KeyError, AttributeError, TypeError, ValueError) as e:
                logger.warning("Ignoring malformed range %r on %s: %s", raw, weekday.value, e)
    return rules


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection: [a_start, a_end) vs [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def _duration(event) -> timedelta:
    minutes = event.duration_minutes
    if minutes is None or minutes <= 0:
        raise ValueError(f"Event duration must be positive, got {minutes!r}")
    return timedelta(minutes=minutes)


def is_day_in_window(day: date, event, today: date) -> bool:
    """Whether ``day`` falls inside the event's activation window and is not past."""
    if day < today:
        return False

    mode = EventType(event.event_type)
    if mode == EventType.always:
        return True

    if event.start_date is None:
        # A date-bounded event without its activation date never opens
        return False
    start = _as_date(event.start_date)
    if day < start:
        return False
    if mode == EventType.single_week:
        return day <= start + timedelta(days=SINGLE_WEEK_DAYS - 1)
    return True


def _busy_intervals(bookings) -> List[Tuple[datetime, datetime]]:
    return [(b.start_time, b.end_time) for b in bookings or []]


def _free_starts(
    day: date,
    step: timedelta,
    ranges: Iterable[TimeRange],
    busy: List[Tuple[datetime, datetime]],
    now: datetime,
) -> Iterator[datetime]:
    # Ranges are walked in stored order, never merged; a start already
    # produced by an earlier overlapping range is not repeated.
    seen = set()
    for time_range in ranges:
        cursor = datetime.combine(day, time_range.start)
        end = datetime.combine(day, time_range.end)
        while cursor + step <= end:
            slot_end = cursor + step
            if (
                cursor not in seen
                and cursor >= now
                and not any(overlaps(cursor, slot_end, b_start, b_end) for b_start, b_end in busy)
            ):
                seen.add(cursor)
                yield cursor
            cursor = slot_end


def iter_slot_starts(day: date, event, rules, bookings, now: datetime) -> Iterator[datetime]:
    """Yield the start of every free slot of ``day``, in emission order."""
    step = _duration(event)
    if not is_day_in_window(day, event, now.date()):
        return iter(())
    weekly = parse_weekly_rules(rules)
    return _free_starts(day, step, weekly.get(Weekday.from_date(day), []), _busy_intervals(bookings), now)


def slots_for_day(day: date, event, rules, bookings, now: datetime) -> List[str]:
    """
    Free slots of ``day`` as "HH:MM" strings.

    A slot is ``duration_minutes`` long, starts at a range start plus a whole
    multiple of the duration and must end no later than the range end. Slots
    starting before ``now`` and slots overlapping a booking are left out.
    """
    return [start.strftime(SLOT_FORMAT) for start in iter_slot_starts(day, event, rules, bookings, now)]


def month_grid(year: int, month: int) -> List[date]:
    """Days shown for a month: whole Monday-first weeks, adjacent-month days included."""
    return list(calendar.Calendar(firstweekday=calendar.MONDAY).itermonthdates(year, month))


def days_with_availability(year: int, month: int, event, rules, bookings, now: datetime) -> List[date]:
    """Days of the month grid that are in the activation window and have a free slot."""
    step = _duration(event)
    today = now.date()
    weekly = parse_weekly_rules(rules)
    busy = _busy_intervals(bookings)

    days = []
    for day in month_grid(year, month):
        if not is_day_in_window(day, event, today):
            continue
        ranges = weekly.get(Weekday.from_date(day), [])
        if next(_free_starts(day, step, ranges, busy, now), None) is not None:
            days.append(day)
    return days


def slot_interval(day: date, slot: Any, duration_minutes: int) -> Tuple[datetime, datetime]:
    """Booking interval for a slot picked from ``slots_for_day``."""
    start = datetime.combine(day, parse_time(slot))
    return start, start + timedelta(minutes=duration_minutes)


def is_slot_available(start: datetime, event, rules, bookings, now: datetime) -> bool:
    """Whether ``start`` is one of the free slots the engine offers for its day."""
    return any(candidate == start for candidate in iter_slot_starts(start.date(), event, rules, bookings, now))

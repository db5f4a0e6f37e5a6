from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, UUID4, field_validator, model_validator

from app.utils.availability import Weekday, parse_time


# Time range: one open window of a weekday, "HH:MM" strings
class TimeRange(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        # Normalise "9:00" / "09:00:00" to "09:00"
        return parse_time(v).strftime("%H:%M")

    @model_validator(mode="after")
    def check_order(self):
        if self.start >= self.end:
            raise ValueError(f"start ({self.start}) must be before end ({self.end})")
        return self


def _normalise_rule_keys(v: Any) -> Any:
    """Accept English, Italian or mangled day labels; store canonical English keys."""
    if not isinstance(v, dict):
        return v
    rules: Dict[Weekday, List[Any]] = {}
    for label, ranges in v.items():
        rules.setdefault(Weekday.parse(label), []).extend(ranges or [])
    return rules


# Availability: Create / Update (admin)
class AvailabilityCreate(BaseModel):
    title: str
    rules: Dict[Weekday, List[TimeRange]] = {}

    @field_validator("rules", mode="before")
    @classmethod
    def normalise_keys(cls, v):
        return _normalise_rule_keys(v)


class AvailabilityUpdate(BaseModel):
    title: Optional[str] = None
    rules: Optional[Dict[Weekday, List[TimeRange]]] = None

    @field_validator("rules", mode="before")
    @classmethod
    def normalise_keys(cls, v):
        return _normalise_rule_keys(v)


# Availability: DB response. Stored documents may predate key normalisation,
# so rules are returned as stored.
class Availability(BaseModel):
    id: UUID4
    title: str
    rules: Dict[str, Any]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Compact availability for nested event responses
class AvailabilitySummary(BaseModel):
    id: UUID4
    title: str

    class Config:
        from_attributes = True

"""Pydantic schemas for Rides.

JSON attribute names follow the public ride format (``dateTime``,
``maxRiders``, ``ownerId``, ``rideType`` alongside snake_case recurrence
fields); snake_case names are accepted on input as well.
"""
from __future__ import annotations
import re
from datetime import date, datetime
from typing import Optional
from dateutil.parser import isoparse
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from groupride.config import settings
from groupride.models.ride import Difficulty, RecurringType, RideStatus, RideType, Terrain
from groupride.services.recurrence import count_occurrences

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    """Ride times are stored as wall-clock time; drop any offset as given."""
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def _to_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return isoparse(value).date()
    return value


class RideCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    date_time: datetime = Field(validation_alias=AliasChoices("dateTime", "date_time"))
    distance: int = Field(ge=1)
    difficulty: Difficulty
    max_riders: int = Field(ge=1, validation_alias=AliasChoices("maxRiders", "max_riders"))
    owner_id: str = Field(validation_alias=AliasChoices("ownerId", "owner_id"))
    address: str = Field(min_length=1, max_length=500)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    ride_type: RideType = Field(validation_alias=AliasChoices("rideType", "ride_type"))
    pace: float = Field(ge=1)
    terrain: Terrain
    route_url: Optional[str] = None
    description: Optional[str] = None

    # Recurrence rule
    is_recurring: bool = False
    recurring_type: Optional[RecurringType] = None
    recurring_day: Optional[int] = None
    recurring_time: Optional[str] = None
    recurring_end_date: Optional[date] = None

    @field_validator("date_time")
    @classmethod
    def normalize_date_time(cls, value):
        return _naive(value)

    @field_validator("recurring_end_date", mode="before")
    @classmethod
    def end_date_from_timestamp(cls, value):
        return _to_date(value)

    @model_validator(mode="after")
    def check_recurrence_rule(self) -> "RideCreate":
        if not self.is_recurring:
            return self

        missing = [
            name for name in ("recurring_type", "recurring_day", "recurring_time", "recurring_end_date")
            if getattr(self, name) is None
        ]
        if missing:
            raise ValueError(f"Recurring rides require: {', '.join(missing)}")

        problems = []
        if self.recurring_type == RecurringType.weekly and not 0 <= self.recurring_day <= 6:
            problems.append("recurring_day must be 0-6 (day of week) for weekly rides")
        if self.recurring_type == RecurringType.monthly and not 1 <= self.recurring_day <= 31:
            problems.append("recurring_day must be 1-31 (day of month) for monthly rides")
        if not _TIME_RE.match(self.recurring_time):
            problems.append("recurring_time must be formatted HH:mm")
        if self.recurring_end_date < self.date_time.date():
            problems.append("recurring_end_date must be on or after the ride date")
        elif count_occurrences(
            self.date_time, self.recurring_type, self.recurring_end_date, limit=settings.MAX_SERIES_LENGTH,
        ) > settings.MAX_SERIES_LENGTH:
            problems.append(f"A recurring series may contain at most {settings.MAX_SERIES_LENGTH} rides")
        if problems:
            raise ValueError("; ".join(problems))
        return self

    def template(self) -> dict:
        """Descriptive fields plus the first start time."""
        return self.model_dump(
            exclude={"is_recurring", "recurring_type", "recurring_day", "recurring_time", "recurring_end_date"},
        )


class RideUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    date_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("dateTime", "date_time"))
    distance: Optional[int] = Field(None, ge=1)
    difficulty: Optional[Difficulty] = None
    max_riders: Optional[int] = Field(None, ge=1, validation_alias=AliasChoices("maxRiders", "max_riders"))
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    ride_type: Optional[RideType] = Field(None, validation_alias=AliasChoices("rideType", "ride_type"))
    pace: Optional[float] = Field(None, ge=1)
    terrain: Optional[Terrain] = None
    route_url: Optional[str] = None
    description: Optional[str] = None

    @field_validator("date_time")
    @classmethod
    def normalize_date_time(cls, value):
        return _naive(value)


class ParticipantOut(BaseModel):
    user_id: str
    joined_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RideOut(BaseModel):
    id: str
    title: str
    date_time: datetime = Field(serialization_alias="dateTime")
    distance: int
    difficulty: Difficulty
    max_riders: int = Field(serialization_alias="maxRiders")
    owner_id: str = Field(serialization_alias="ownerId")
    address: str
    latitude: float
    longitude: float
    ride_type: RideType = Field(serialization_alias="rideType")
    pace: float
    terrain: Terrain
    route_url: Optional[str] = None
    description: Optional[str] = None
    status: RideStatus
    participant_count: int
    is_recurring: bool
    recurring_type: Optional[RecurringType] = None
    recurring_day: Optional[int] = None
    recurring_time: Optional[str] = None
    recurring_end_date: Optional[date] = None
    series_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    participants: list[ParticipantOut] = []

    model_config = {"from_attributes": True}


class ParticipationPayload(BaseModel):
    user_id: str

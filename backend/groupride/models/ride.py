"""Ride ORM model — one scheduled group ride instance.

Rides generated from one recurrence request share a ``series_id``; the
first member of a series carries its own id as ``series_id``.
"""
import uuid
import enum
from sqlalchemy import (
    Column, String, Date, DateTime, Integer, Float, Boolean, Text, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from groupride.database import Base


class RideStatus(str, enum.Enum):
    active = "active"
    archived = "archived"


class Difficulty(str, enum.Enum):
    """Ordered easiest to hardest: E < D < C < B < A < AA."""
    E = "E"
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    AA = "AA"

    @property
    def rank(self) -> int:
        return DIFFICULTY_ORDER.index(self)


DIFFICULTY_ORDER = [Difficulty.E, Difficulty.D, Difficulty.C, Difficulty.B, Difficulty.A, Difficulty.AA]


class RideType(str, enum.Enum):
    mtb = "MTB"
    road = "ROAD"
    gravel = "GRAVEL"


class Terrain(str, enum.Enum):
    flat = "FLAT"
    hilly = "HILLY"
    mountain = "MOUNTAIN"


class RecurringType(str, enum.Enum):
    weekly = "weekly"
    monthly = "monthly"


# Fields every member of a series shares with its template.
DESCRIPTIVE_FIELDS = (
    "title",
    "distance",
    "difficulty",
    "max_riders",
    "owner_id",
    "address",
    "latitude",
    "longitude",
    "ride_type",
    "pace",
    "terrain",
    "route_url",
    "description",
)


class Ride(Base):
    __tablename__ = "rides"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    date_time = Column(DateTime, nullable=False, index=True)  # naive wall-clock
    distance = Column(Integer, nullable=False)
    difficulty = Column(SAEnum(Difficulty), nullable=False)
    max_riders = Column(Integer, nullable=False)
    owner_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    address = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    ride_type = Column(SAEnum(RideType), nullable=False)
    pace = Column(Float, nullable=False)
    terrain = Column(SAEnum(Terrain), nullable=False)
    route_url = Column(String(1000), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(SAEnum(RideStatus), nullable=False, default=RideStatus.active, index=True)
    participant_count = Column(Integer, nullable=False, default=0)

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_type = Column(SAEnum(RecurringType), nullable=True)
    recurring_day = Column(Integer, nullable=True)
    recurring_time = Column(String(5), nullable=True)  # HH:mm, informational
    recurring_end_date = Column(Date, nullable=True)  # exclusive, day granularity
    series_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    participants = relationship("RideParticipant", back_populates="ride", cascade="all, delete-orphan")
    comments = relationship(
        "RideComment", back_populates="ride", cascade="all, delete-orphan",
        order_by="RideComment.created_at",
    )

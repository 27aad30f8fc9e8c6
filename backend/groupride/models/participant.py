"""RideParticipant ORM model — join record between a user and a ride."""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from groupride.database import Base


class RideParticipant(Base):
    __tablename__ = "ride_participants"
    __table_args__ = (UniqueConstraint("ride_id", "user_id", name="uq_ride_participant"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    ride_id = Column(String(36), ForeignKey("rides.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    ride = relationship("Ride", back_populates="participants")

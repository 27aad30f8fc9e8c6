"""Core ride service — creation, recurring series, membership and ownership.

Responsibilities:
- Single ride creation and recurring series expansion (one transaction,
  series id allocated before insert so the first ride is its own series id)
- Authorization hook: only the owner (or an admin, for deletes) may modify
- Seat accounting: joins claim a seat with a conditional UPDATE so two
  concurrent joins can never overbook a ride
"""
import logging
import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from groupride.models.ride import Ride, RideStatus, RecurringType, DESCRIPTIVE_FIELDS
from groupride.models.participant import RideParticipant
from groupride.models.user import User
from groupride.services.recurrence import expand_occurrences

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = {"route_url", "description"}


def get_ride_or_404(db: Session, ride_id: str) -> Ride:
    ride = db.query(Ride).filter(Ride.id == ride_id).first()
    if not ride:
        raise HTTPException(status_code=404, detail="Ride not found")
    return ride


def _get_user_or_404(db: Session, user_id: str, detail: str = "User not found") -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=detail)
    return user


def _check_owner(ride: Ride, actor_user_id: str) -> None:
    """Only the owner may edit a ride."""
    if ride.owner_id != actor_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the ride owner may modify this ride.",
        )


def _check_owner_or_admin(db: Session, owner_id: str, actor_user_id: str) -> None:
    if owner_id == actor_user_id:
        return
    actor = db.query(User).filter(User.user_id == actor_user_id).first()
    if not actor or not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the ride owner or an admin may delete this ride.",
        )


def _build_ride(template: dict[str, Any], ride_id: str, date_time: datetime, **extra: Any) -> Ride:
    return Ride(
        id=ride_id,
        date_time=date_time,
        status=RideStatus.active,
        participant_count=0,
        **{field: template[field] for field in DESCRIPTIVE_FIELDS},
        **extra,
    )


def create_ride(db: Session, template: dict[str, Any]) -> Ride:
    """Create one non-recurring ride."""
    _get_user_or_404(db, template["owner_id"], detail="Owner user not found")

    ride = _build_ride(template, str(uuid.uuid4()), template["date_time"], is_recurring=False)
    db.add(ride)
    db.commit()
    db.refresh(ride)
    logger.info("Created ride '%s' (%s) by owner %s", ride.title, ride.id, ride.owner_id)
    return ride


def create_ride_series(
    db: Session,
    template: dict[str, Any],
    recurring_type: RecurringType,
    recurring_day: int,
    recurring_time: str,
    recurring_end_date: date,
) -> Ride:
    """Expand a template and recurrence rule into a persisted series.

    Every instance is inserted in a single transaction; any failure rolls the
    whole series back. Returns the first instance, whose id is the series id.
    """
    _get_user_or_404(db, template["owner_id"], detail="Owner user not found")

    series_id = str(uuid.uuid4())
    rule = {
        "is_recurring": True,
        "recurring_type": RecurringType(recurring_type),
        "recurring_day": recurring_day,
        "recurring_time": recurring_time,
        "recurring_end_date": recurring_end_date,
        "series_id": series_id,
    }

    first = None
    count = 0
    try:
        for when in expand_occurrences(template["date_time"], rule["recurring_type"], recurring_end_date):
            ride_id = series_id if first is None else str(uuid.uuid4())
            ride = _build_ride(template, ride_id, when, **rule)
            db.add(ride)
            db.flush()
            if first is None:
                first = ride
            count += 1
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to create ride series '%s'; nothing was saved", template.get("title"))
        raise

    db.refresh(first)
    logger.info(
        "Created %s ride series %s with %d rides (%s to %s) by owner %s",
        rule["recurring_type"].value, series_id, count, first.date_time, recurring_end_date, first.owner_id,
    )
    return first


def update_ride(db: Session, ride_id: str, actor_user_id: str, updates: dict[str, Any]) -> Ride:
    """Owner-only partial edit. Status is never touched here."""
    ride = get_ride_or_404(db, ride_id)
    _check_owner(ride, actor_user_id)

    cleared = sorted(field for field, value in updates.items() if value is None and field not in OPTIONAL_FIELDS)
    if cleared:
        raise HTTPException(status_code=400, detail=f"Required fields cannot be null: {', '.join(cleared)}")

    new_capacity = updates.get("max_riders")
    if new_capacity is not None and new_capacity < ride.participant_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"maxRiders cannot be lower than the {ride.participant_count} riders already joined",
        )

    for field, value in updates.items():
        setattr(ride, field, value)

    db.commit()
    db.refresh(ride)
    logger.info("Updated ride %s (%s)", ride_id, ", ".join(sorted(updates)) or "no changes")
    return ride


def delete_ride(db: Session, ride_id: str, actor_user_id: str) -> None:
    """Delete a ride with its participants and comments."""
    ride = get_ride_or_404(db, ride_id)
    _check_owner_or_admin(db, ride.owner_id, actor_user_id)
    db.delete(ride)
    db.commit()
    logger.info("Deleted ride %s by user %s", ride_id, actor_user_id)


def delete_series(db: Session, series_id: str, actor_user_id: str) -> int:
    """Delete every member of a series. Returns the number of rides removed."""
    rides = db.query(Ride).filter(Ride.series_id == series_id).all()
    if not rides:
        raise HTTPException(status_code=404, detail="Series not found")
    _check_owner_or_admin(db, rides[0].owner_id, actor_user_id)

    for ride in rides:
        db.delete(ride)
    db.commit()
    logger.info("Deleted series %s (%d rides) by user %s", series_id, len(rides), actor_user_id)
    return len(rides)


def join_ride(db: Session, ride_id: str, user_id: str) -> Ride:
    """Add a participant, claiming a seat atomically at write time."""
    ride = get_ride_or_404(db, ride_id)
    _get_user_or_404(db, user_id)

    if ride.status == RideStatus.archived:
        raise HTTPException(status_code=400, detail="Cannot join an archived ride")

    existing = (
        db.query(RideParticipant)
        .filter(RideParticipant.ride_id == ride_id, RideParticipant.user_id == user_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="Already joined this ride")

    claimed = (
        db.query(Ride)
        .filter(Ride.id == ride_id, Ride.participant_count < Ride.max_riders)
        .update({Ride.participant_count: Ride.participant_count + 1}, synchronize_session=False)
    )
    if not claimed:
        db.rollback()
        raise HTTPException(status_code=409, detail="Ride is full")

    db.add(RideParticipant(ride_id=ride_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Already joined this ride")

    db.refresh(ride)
    logger.info("User %s joined ride %s (%d/%d)", user_id, ride_id, ride.participant_count, ride.max_riders)
    return ride


def leave_ride(db: Session, ride_id: str, user_id: str) -> Ride:
    """Remove a participant and release their seat."""
    ride = get_ride_or_404(db, ride_id)
    participant = (
        db.query(RideParticipant)
        .filter(RideParticipant.ride_id == ride_id, RideParticipant.user_id == user_id)
        .first()
    )
    if not participant:
        raise HTTPException(status_code=404, detail="User is not a participant of this ride")

    db.delete(participant)
    db.query(Ride).filter(Ride.id == ride_id, Ride.participant_count > 0).update(
        {Ride.participant_count: Ride.participant_count - 1}, synchronize_session=False,
    )
    db.commit()
    db.refresh(ride)
    logger.info("User %s left ride %s", user_id, ride_id)
    return ride


def list_rides(
    db: Session,
    ride_status: Optional[RideStatus] = None,
    owner_id: Optional[str] = None,
    participant_id: Optional[str] = None,
    series_id: Optional[str] = None,
    difficulties: Optional[list] = None,
    newest_first: bool = False,
) -> list[Ride]:
    query = db.query(Ride)
    if ride_status:
        query = query.filter(Ride.status == ride_status)
    if owner_id:
        query = query.filter(Ride.owner_id == owner_id)
    if participant_id:
        query = query.join(RideParticipant).filter(RideParticipant.user_id == participant_id)
    if series_id:
        query = query.filter(Ride.series_id == series_id)
    if difficulties is not None:
        query = query.filter(Ride.difficulty.in_(difficulties))
    order = Ride.date_time.desc() if newest_first else Ride.date_time
    return query.order_by(order).all()

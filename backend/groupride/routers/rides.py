"""Ride API routes — delegates to ride_service for invariant enforcement."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from groupride.database import get_db
from groupride.models.ride import Difficulty, DIFFICULTY_ORDER, RideStatus
from groupride.schemas.ride import RideCreate, RideUpdate, RideOut, ParticipationPayload
from groupride.services import ride_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=RideOut, status_code=status.HTTP_201_CREATED)
def create_ride(payload: RideCreate, db: Session = Depends(get_db)):
    """Create a ride, or a whole recurring series when ``is_recurring`` is set.

    For a series the first ride is returned; its id is the ``series_id``.
    """
    template = payload.template()
    if not payload.is_recurring:
        return ride_service.create_ride(db, template)
    return ride_service.create_ride_series(
        db,
        template,
        recurring_type=payload.recurring_type,
        recurring_day=payload.recurring_day,
        recurring_time=payload.recurring_time,
        recurring_end_date=payload.recurring_end_date,
    )


@router.get("/", response_model=list[RideOut])
def list_rides(
    ride_status: Optional[RideStatus] = Query(None, alias="status"),
    include_archived: bool = Query(False),
    owner_id: Optional[str] = Query(None),
    participant_id: Optional[str] = Query(None),
    series_id: Optional[str] = Query(None),
    difficulty_min: Optional[Difficulty] = Query(None, description="Easiest difficulty to include"),
    db: Session = Depends(get_db),
):
    """List rides ordered by start time. Active rides only unless asked otherwise."""
    if ride_status is None and not include_archived:
        ride_status = RideStatus.active
    difficulties = DIFFICULTY_ORDER[difficulty_min.rank:] if difficulty_min else None
    return ride_service.list_rides(
        db,
        ride_status=ride_status,
        owner_id=owner_id,
        participant_id=participant_id,
        series_id=series_id,
        difficulties=difficulties,
    )


@router.get("/archived", response_model=list[RideOut])
def list_archived_rides(db: Session = Depends(get_db)):
    """Archived rides, most recent first."""
    return ride_service.list_rides(db, ride_status=RideStatus.archived, newest_first=True)


@router.delete("/series/{series_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_series(
    series_id: str,
    actor_user_id: str = Query(..., description="ID of the user deleting the series"),
    db: Session = Depends(get_db),
):
    """Delete every ride of a recurring series (owner or admin)."""
    ride_service.delete_series(db, series_id, actor_user_id)


@router.get("/{ride_id}", response_model=RideOut)
def get_ride(ride_id: str, db: Session = Depends(get_db)):
    """Fetch a single ride with its participants."""
    return ride_service.get_ride_or_404(db, ride_id)


@router.put("/{ride_id}", response_model=RideOut)
def update_ride(
    ride_id: str,
    payload: RideUpdate,
    actor_user_id: str = Query(..., description="ID of the user performing the update"),
    db: Session = Depends(get_db),
):
    """Update a ride (owner only). Status is managed by the archival sweep."""
    return ride_service.update_ride(
        db,
        ride_id=ride_id,
        actor_user_id=actor_user_id,
        updates=payload.model_dump(exclude_unset=True),
    )


@router.delete("/{ride_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ride(
    ride_id: str,
    actor_user_id: str = Query(..., description="ID of the user deleting the ride"),
    db: Session = Depends(get_db),
):
    """Delete a ride and its participants and comments (owner or admin)."""
    ride_service.delete_ride(db, ride_id, actor_user_id)


@router.post("/{ride_id}/join", response_model=RideOut)
def join_ride(ride_id: str, payload: ParticipationPayload, db: Session = Depends(get_db)):
    """Join a ride; rejected once the ride is full."""
    return ride_service.join_ride(db, ride_id, payload.user_id)


@router.post("/{ride_id}/leave", response_model=RideOut)
def leave_ride(ride_id: str, payload: ParticipationPayload, db: Session = Depends(get_db)):
    """Leave a ride, freeing the seat."""
    return ride_service.leave_ride(db, ride_id, payload.user_id)

"""Ride comment API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from groupride.database import get_db
from groupride.models.comment import RideComment
from groupride.models.user import User
from groupride.schemas.comment import CommentCreate, CommentOut
from groupride.services.ride_service import get_ride_or_404

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{ride_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def create_comment(ride_id: str, payload: CommentCreate, db: Session = Depends(get_db)):
    """Post a comment on a ride."""
    get_ride_or_404(db, ride_id)
    if not db.query(User).filter(User.user_id == payload.user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    comment = RideComment(ride_id=ride_id, user_id=payload.user_id, content=payload.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("User %s commented on ride %s (%s)", payload.user_id, ride_id, comment.id)
    return comment


@router.get("/{ride_id}/comments", response_model=list[CommentOut])
def list_comments(ride_id: str, db: Session = Depends(get_db)):
    """List a ride's comments, oldest first."""
    return get_ride_or_404(db, ride_id).comments


@router.delete("/{ride_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    ride_id: str,
    comment_id: str,
    actor_user_id: str = Query(..., description="ID of the user deleting the comment"),
    db: Session = Depends(get_db),
):
    """Delete a comment (its author or the ride owner)."""
    ride = get_ride_or_404(db, ride_id)
    comment = (
        db.query(RideComment)
        .filter(RideComment.id == comment_id, RideComment.ride_id == ride_id)
        .first()
    )
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if actor_user_id not in (comment.user_id, ride.owner_id):
        raise HTTPException(status_code=403, detail="Only the author or the ride owner may delete this comment")

    db.delete(comment)
    db.commit()
    logger.info("Deleted comment %s on ride %s by user %s", comment_id, ride_id, actor_user_id)

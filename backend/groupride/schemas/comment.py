"""Pydantic schemas for ride comments."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    user_id: str
    content: str = Field(min_length=1, max_length=1000)


class CommentOut(BaseModel):
    id: str
    ride_id: str
    user_id: str
    content: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates all tables for the Group Ride application:
users, rides, ride_participants, ride_comments.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

difficulty = sa.Enum("E", "D", "C", "B", "A", "AA", name="difficulty")
ride_type = sa.Enum("mtb", "road", "gravel", name="ridetype")
terrain = sa.Enum("flat", "hilly", "mountain", name="terrain")
ride_status = sa.Enum("active", "archived", name="ridestatus")
recurring_type = sa.Enum("weekly", "monthly", name="recurringtype")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- rides ---
    op.create_table(
        "rides",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("date_time", sa.DateTime, nullable=False),
        sa.Column("distance", sa.Integer, nullable=False),
        sa.Column("difficulty", difficulty, nullable=False),
        sa.Column("max_riders", sa.Integer, nullable=False),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("ride_type", ride_type, nullable=False),
        sa.Column("pace", sa.Float, nullable=False),
        sa.Column("terrain", terrain, nullable=False),
        sa.Column("route_url", sa.String(1000), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", ride_status, nullable=False, server_default="active"),
        sa.Column("participant_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_recurring", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("recurring_type", recurring_type, nullable=True),
        sa.Column("recurring_day", sa.Integer, nullable=True),
        sa.Column("recurring_time", sa.String(5), nullable=True),
        sa.Column("recurring_end_date", sa.Date, nullable=True),
        sa.Column("series_id", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_rides_date_time", "rides", ["date_time"])
    op.create_index("ix_rides_status", "rides", ["status"])
    op.create_index("ix_rides_series_id", "rides", ["series_id"])

    # --- ride_participants ---
    op.create_table(
        "ride_participants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ride_id", sa.String(36), sa.ForeignKey("rides.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("ride_id", "user_id", name="uq_ride_participant"),
    )

    # --- ride_comments ---
    op.create_table(
        "ride_comments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ride_id", sa.String(36), sa.ForeignKey("rides.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("ride_comments")
    op.drop_table("ride_participants")
    op.drop_index("ix_rides_series_id", table_name="rides")
    op.drop_index("ix_rides_status", table_name="rides")
    op.drop_index("ix_rides_date_time", table_name="rides")
    op.drop_table("rides")
    op.drop_table("users")
    for enum_type in (recurring_type, ride_status, terrain, ride_type, difficulty):
        enum_type.drop(op.get_bind(), checkfirst=True)

"""Create sos_records, circle_members and user_profiles tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sos_records",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False, server_default="0"),
        sa.Column("lng", sa.Float(), nullable=False, server_default="0"),
        sa.Column("accuracy", sa.Float(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("resolution", sa.String(20), nullable=False, server_default="in_progress"),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sos_records_user_id"), "sos_records", ["user_id"], unique=False)

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(128), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("premium_plan", sa.String(64), nullable=True),
        sa.Column("premium_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_payment_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("last_payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_profiles_phone_number"), "user_profiles", ["phone_number"], unique=False)

    op.create_table(
        "circle_members",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default="Friends"),
        sa.Column("profile_picture", sa.String(1024), nullable=True),
        sa.Column("is_registered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "phone_number", name="uq_circle_owner_phone"),
    )
    op.create_index(op.f("ix_circle_members_owner_id"), "circle_members", ["owner_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_circle_members_owner_id"), table_name="circle_members")
    op.drop_table("circle_members")
    op.drop_index(op.f("ix_user_profiles_phone_number"), table_name="user_profiles")
    op.drop_table("user_profiles")
    op.drop_index(op.f("ix_sos_records_user_id"), table_name="sos_records")
    op.drop_table("sos_records")

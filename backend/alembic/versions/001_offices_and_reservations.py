"""Initial schema: offices and reservations with overlap index and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "offices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("price_per_day", sa.Integer(), nullable=False),
        sa.Column("monthly_discount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("price_per_day > 0", name="check_office_price_positive"),
        sa.CheckConstraint(
            "monthly_discount >= 0 AND monthly_discount <= 90",
            name="check_office_monthly_discount_range",
        ),
        sa.CheckConstraint("approval_status IN ('pending', 'approved')", name="check_office_approval_status"),
    )
    op.create_index("ix_offices_id", "offices", ["id"])
    op.create_index("ix_offices_owner_id", "offices", ["owner_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("office_id", sa.Integer(), sa.ForeignKey("offices.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("wifi_password", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("start_date <= end_date", name="check_reservation_date_order"),
        sa.CheckConstraint("price >= 0", name="check_reservation_price_non_negative"),
        sa.CheckConstraint("status IN ('active', 'cancelled')", name="check_reservation_status"),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    # OVERLAP INDEX: the booking lock is held while this query runs, so it
    # has to stay an index range scan even for offices with long histories.
    op.create_index(
        "ix_reservations_office_overlap",
        "reservations",
        ["office_id", "status", "start_date", "end_date"],
    )


def downgrade() -> None:
    op.drop_table("reservations")
    op.drop_table("offices")

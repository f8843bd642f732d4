"""Add product_scan_history and scan_schedules tables for the dashboard.

Revision ID: 20250315000000
Revises: 20250301000000
Create Date: 2025-03-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20250315000000"
down_revision: Union[str, None] = "20250301000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "product_scan_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("scan_id", sa.String(length=36), nullable=False),
        sa.Column("shop_domain", sa.String(length=255), nullable=False),
        sa.Column("product_id", sa.String(length=255), nullable=False),
        sa.Column("market", sa.String(length=16), nullable=False),
        sa.Column("compliance_score", sa.Float(), nullable=False),
        sa.Column("violations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "scanned_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_product_scan_history_scan_id"),
        "product_scan_history",
        ["scan_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_product_scan_history_shop_domain"),
        "product_scan_history",
        ["shop_domain"],
        unique=False,
    )
    op.create_table(
        "scan_schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("shop_domain", sa.String(length=255), nullable=False),
        sa.Column("product_id", sa.String(length=255), nullable=False),
        sa.Column("market", sa.String(length=16), nullable=False, server_default="default"),
        sa.Column("frequency", sa.String(length=16), nullable=False, server_default="weekly"),
        sa.Column("next_run", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_run", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shop_domain", "product_id", name="uq_scan_schedules_shop_product"),
    )
    op.create_index(
        op.f("ix_scan_schedules_shop_domain"),
        "scan_schedules",
        ["shop_domain"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_scan_schedules_shop_domain"), table_name="scan_schedules")
    op.drop_table("scan_schedules")
    op.drop_index(op.f("ix_product_scan_history_shop_domain"), table_name="product_scan_history")
    op.drop_index(op.f("ix_product_scan_history_scan_id"), table_name="product_scan_history")
    op.drop_table("product_scan_history")

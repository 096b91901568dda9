"""create class overrides

Revision ID: 20261018_0002
Revises: 20261017_0001
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0002"
down_revision = "20261017_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "class_overrides",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_group_id", sa.String(length=36), nullable=False),
        sa.Column("timetable_entry_id", sa.String(length=36), nullable=True),
        sa.Column("on_date", sa.Date(), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=True),
        sa.Column("start_time", sa.String(length=8), nullable=True),
        sa.Column("end_time", sa.String(length=8), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("timetable_entry_id", "on_date", name="uq_class_overrides_entry_date"),
    )
    op.create_index("ix_class_overrides_class_group_id", "class_overrides", ["class_group_id"])
    op.create_index("ix_class_overrides_timetable_entry_id", "class_overrides", ["timetable_entry_id"])
    op.create_index("ix_class_overrides_on_date", "class_overrides", ["on_date"])


def downgrade() -> None:
    op.drop_index("ix_class_overrides_on_date", table_name="class_overrides")
    op.drop_index("ix_class_overrides_timetable_entry_id", table_name="class_overrides")
    op.drop_index("ix_class_overrides_class_group_id", table_name="class_overrides")
    op.drop_table("class_overrides")

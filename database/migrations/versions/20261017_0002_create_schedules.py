"""create daily and semester schedules

Revision ID: 20261017_0002
Revises: 20261017_0001
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0002"
down_revision = "20261017_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    semester_schedule_status = sa.Enum("DRAFT", "PUBLISHED", "ARCHIVED", name="semester_schedule_status")

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.String(length=20), nullable=False),
        sa.Column("time_slot", sa.String(length=20), nullable=False),
        sa.Column("room", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedules_class_id", "schedules", ["class_id"], unique=False)
    op.create_index("ix_schedules_teacher_id", "schedules", ["teacher_id"], unique=False)
    op.create_index("ix_schedules_term_day_slot", "schedules", ["term_id", "day_of_week", "time_slot"], unique=False)

    op.create_table(
        "semester_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", semester_schedule_status, nullable=False, server_default="DRAFT"),
        sa.Column("meta", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("term_id", "class_id", "version", name="uq_semester_schedules_term_class_version"),
    )
    op.create_index("ix_semester_schedules_term_id", "semester_schedules", ["term_id"], unique=False)
    op.create_index("ix_semester_schedules_class_id", "semester_schedules", ["class_id"], unique=False)

    op.create_table(
        "semester_schedule_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "semester_schedule_id",
            sa.String(length=36),
            sa.ForeignKey("semester_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("time_slot", sa.Integer(), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("room", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "semester_schedule_id",
            "day_of_week",
            "time_slot",
            name="uq_semester_schedule_slots_cell",
        ),
    )
    op.create_index(
        "ix_semester_schedule_slots_semester_schedule_id",
        "semester_schedule_slots",
        ["semester_schedule_id"],
        unique=False,
    )
    op.create_index("ix_semester_schedule_slots_teacher_id", "semester_schedule_slots", ["teacher_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_semester_schedule_slots_teacher_id", table_name="semester_schedule_slots")
    op.drop_index("ix_semester_schedule_slots_semester_schedule_id", table_name="semester_schedule_slots")
    op.drop_table("semester_schedule_slots")
    op.drop_index("ix_semester_schedules_class_id", table_name="semester_schedules")
    op.drop_index("ix_semester_schedules_term_id", table_name="semester_schedules")
    op.drop_table("semester_schedules")
    sa.Enum(name="semester_schedule_status").drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_schedules_term_day_slot", table_name="schedules")
    op.drop_index("ix_schedules_teacher_id", table_name="schedules")
    op.drop_index("ix_schedules_class_id", table_name="schedules")
    op.drop_table("schedules")

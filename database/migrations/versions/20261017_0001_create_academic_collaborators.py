"""create academic collaborator tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "terms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("grade", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=False)

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "teacher_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "class_id",
            "term_id",
            "subject_id",
            "teacher_id",
            name="uq_teacher_assignments_identity",
        ),
    )
    op.create_index("ix_teacher_assignments_class_id", "teacher_assignments", ["class_id"], unique=False)
    op.create_index("ix_teacher_assignments_term_id", "teacher_assignments", ["term_id"], unique=False)

    op.create_table(
        "teacher_preferences",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("max_load_per_day", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_load_per_week", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unavailable", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teacher_preferences_teacher_id", "teacher_preferences", ["teacher_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_teacher_preferences_teacher_id", table_name="teacher_preferences")
    op.drop_table("teacher_preferences")
    op.drop_index("ix_teacher_assignments_term_id", table_name="teacher_assignments")
    op.drop_index("ix_teacher_assignments_class_id", table_name="teacher_assignments")
    op.drop_table("teacher_assignments")
    op.drop_table("teachers")
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_table("classes")
    op.drop_table("terms")

"""create schedule tables

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


schedule_mode_enum = sa.Enum("recurring", "one_off", name="schedule_mode")
schedule_status_enum = sa.Enum("planned", "confirmed", "completed", "cancelled", name="schedule_status")
override_action_enum = sa.Enum("cancel", "reschedule", "status_only", name="override_action")


def upgrade() -> None:
    op.create_table(
        "instructors",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column(
            "default_instructor_id",
            sa.String(length=36),
            sa.ForeignKey("instructors.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "subjects",
        sa.Column("code", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
    )
    op.create_table(
        "class_types",
        sa.Column("code", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("badge_text", sa.String(length=50), nullable=False),
        sa.Column("max_students", sa.Integer(), nullable=False),
        sa.CheckConstraint("max_students > 0", name="ck_class_types_max_students"),
    )
    op.create_table(
        "class_type_compatibility",
        sa.Column(
            "class_type_a",
            sa.String(length=50),
            sa.ForeignKey("class_types.code", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column(
            "class_type_b",
            sa.String(length=50),
            sa.ForeignKey("class_types.code", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("is_compatible", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
    )
    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("schedule_mode", schedule_mode_enum, nullable=False),
        sa.Column(
            "instructor_id",
            sa.String(length=36),
            sa.ForeignKey("instructors.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "subject_code",
            sa.String(length=50),
            sa.ForeignKey("subjects.code", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "class_type_code",
            sa.String(length=50),
            sa.ForeignKey("class_types.code", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("weekday", sa.SmallInteger(), nullable=True),
        sa.Column("class_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("active_from", sa.Date(), nullable=False),
        sa.Column("active_to", sa.Date(), nullable=True),
        sa.Column("progress_status", schedule_status_enum, nullable=False, server_default="planned"),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_classes_time_order"),
        sa.CheckConstraint(
            "(schedule_mode = 'recurring' AND weekday IS NOT NULL AND class_date IS NULL) OR "
            "(schedule_mode = 'one_off' AND class_date IS NOT NULL AND weekday IS NULL)",
            name="ck_classes_mode_fields",
        ),
        sa.CheckConstraint("weekday IS NULL OR (weekday BETWEEN 1 AND 7)", name="ck_classes_weekday_range"),
    )
    op.create_index(
        "ix_classes_instructor_weekday_time",
        "classes",
        ["instructor_id", "weekday", "start_time", "end_time"],
    )
    op.create_index(
        "ix_classes_instructor_date_time",
        "classes",
        ["instructor_id", "class_date", "start_time", "end_time"],
    )
    op.create_table(
        "class_enrollments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "student_id",
            sa.String(length=36),
            sa.ForeignKey("students.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("class_id", "student_id", name="uq_class_enrollments_class_student"),
    )
    op.create_index("ix_class_enrollments_class_id", "class_enrollments", ["class_id"])
    op.create_index("ix_class_enrollments_student_id", "class_enrollments", ["student_id"])
    op.create_table(
        "class_overrides",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("override_date", sa.Date(), nullable=False),
        sa.Column("action", override_action_enum, nullable=False),
        sa.Column(
            "override_instructor_id",
            sa.String(length=36),
            sa.ForeignKey("instructors.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("override_start_time", sa.Time(), nullable=True),
        sa.Column("override_end_time", sa.Time(), nullable=True),
        sa.Column("override_status", schedule_status_enum, nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("class_id", "override_date", name="uq_class_overrides_class_date"),
        sa.CheckConstraint(
            "override_end_time IS NULL OR override_start_time IS NULL OR override_end_time > override_start_time",
            name="ck_class_overrides_time_order",
        ),
    )
    op.create_index("ix_class_overrides_override_instructor_id", "class_overrides", ["override_instructor_id"])
    op.create_table(
        "class_status_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", schedule_status_enum, nullable=False),
        sa.Column("changed_by", sa.String(length=36), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("reason", sa.Text(), nullable=True),
    )
    op.create_index("ix_class_status_logs_class_changed", "class_status_logs", ["class_id", "changed_at"])


def downgrade() -> None:
    op.drop_index("ix_class_status_logs_class_changed", table_name="class_status_logs")
    op.drop_table("class_status_logs")
    op.drop_index("ix_class_overrides_override_instructor_id", table_name="class_overrides")
    op.drop_table("class_overrides")
    op.drop_index("ix_class_enrollments_student_id", table_name="class_enrollments")
    op.drop_index("ix_class_enrollments_class_id", table_name="class_enrollments")
    op.drop_table("class_enrollments")
    op.drop_index("ix_classes_instructor_date_time", table_name="classes")
    op.drop_index("ix_classes_instructor_weekday_time", table_name="classes")
    op.drop_table("classes")
    op.drop_table("class_type_compatibility")
    op.drop_table("class_types")
    op.drop_table("subjects")
    op.drop_table("students")
    op.drop_table("instructors")
    override_action_enum.drop(op.get_bind(), checkfirst=True)
    schedule_status_enum.drop(op.get_bind(), checkfirst=True)
    schedule_mode_enum.drop(op.get_bind(), checkfirst=True)

"""create hr departments, job grades, employees and status logs

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "hr_departments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_hr_departments_name", "hr_departments", ["name"], unique=False)

    op.create_table(
        "hr_job_grades",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("level", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "hr_employees",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_code", sa.String(length=64), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=255), nullable=True),
        sa.Column("department_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("job_title", sa.String(length=255), nullable=True),
        sa.Column("job_grade_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("national_id", sa.String(length=64), nullable=True),
        sa.Column("gender", sa.String(length=16), nullable=True),
        sa.Column("employment_status", sa.String(length=32), nullable=False),
        sa.Column("hire_date", sa.Date(), nullable=True),
        sa.Column("termination_date", sa.Date(), nullable=True),
        sa.Column("custom_fields", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["department_id"], ["hr_departments.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["job_grade_id"], ["hr_job_grades.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_code"),
    )
    op.create_index("ix_hr_employees_email", "hr_employees", ["email"], unique=False)
    op.create_index("ix_hr_employees_phone", "hr_employees", ["phone"], unique=False)
    op.create_index(
        "ix_hr_employees_employment_status",
        "hr_employees",
        ["employment_status"],
        unique=False,
    )
    op.create_index("ix_hr_employees_department_id", "hr_employees", ["department_id"], unique=False)

    op.create_table(
        "hr_employee_status_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("previous_status", sa.String(length=32), nullable=False),
        sa.Column("next_status", sa.String(length=32), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["hr_employees.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_hr_employee_status_logs_employee_created",
        "hr_employee_status_logs",
        ["employee_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_hr_employee_status_logs_employee_created", table_name="hr_employee_status_logs")
    op.drop_table("hr_employee_status_logs")
    op.drop_index("ix_hr_employees_department_id", table_name="hr_employees")
    op.drop_index("ix_hr_employees_employment_status", table_name="hr_employees")
    op.drop_index("ix_hr_employees_phone", table_name="hr_employees")
    op.drop_index("ix_hr_employees_email", table_name="hr_employees")
    op.drop_table("hr_employees")
    op.drop_table("hr_job_grades")
    op.drop_index("ix_hr_departments_name", table_name="hr_departments")
    op.drop_table("hr_departments")

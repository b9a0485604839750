"""
db/models/employee.py

Employee record and its employment status history.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class EmploymentStatus(str, enum.Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class EmployeeGender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Employee(Base, TimestampMixin):
    """
    One employee. employee_code, email and phone are the external identifiers
    bulk import matches on; email uniqueness is enforced case-insensitively
    by the repository, not the database.
    """

    __tablename__ = "hr_employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_code: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Free-text department label kept alongside department_id",
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("hr_departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    job_grade_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("hr_job_grades.id", ondelete="SET NULL"),
        nullable=True,
    )
    national_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    gender: Mapped[EmployeeGender | None] = mapped_column(
        Enum(
            EmployeeGender,
            name="employee_gender",
            native_enum=False,
            length=16,
            values_callable=_enum_values,
        ),
        nullable=True,
    )
    employment_status: Mapped[EmploymentStatus] = mapped_column(
        Enum(
            EmploymentStatus,
            name="employment_status",
            native_enum=False,
            length=32,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=EmploymentStatus.ACTIVE,
    )
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    custom_fields: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="Free-form key/value attributes, e.g. imported custom.* columns",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_hr_employees_email", "email"),
        Index("ix_hr_employees_phone", "phone"),
        Index("ix_hr_employees_employment_status", "employment_status"),
        Index("ix_hr_employees_department_id", "department_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Employee id={self.id} code={self.employee_code!r} "
            f"status={self.employment_status!r}>"
        )


class EmployeeStatusLog(Base):
    __tablename__ = "hr_employee_status_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("hr_employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    previous_status: Mapped[str] = mapped_column(String(32), nullable=False)
    next_status: Mapped[str] = mapped_column(String(32), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_hr_employee_status_logs_employee_created", "employee_id", "created_at"),
    )

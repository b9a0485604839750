"""
db/models/department.py

Department and job grade reference tables.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Department(Base, TimestampMixin):
    __tablename__ = "hr_departments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    code: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        comment="Stored upper-case; used by bulk import to resolve departments",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (Index("ix_hr_departments_name", "name"),)

    def __repr__(self) -> str:
        return f"<Department id={self.id} code={self.code!r} name={self.name!r}>"


class JobGrade(Base, TimestampMixin):
    __tablename__ = "hr_job_grades"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    code: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    level: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<JobGrade id={self.id} code={self.code!r} level={self.level!r}>"

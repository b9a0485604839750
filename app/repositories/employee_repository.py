"""
app/repositories/employee_repository.py

Persistence layer for employees, as consumed by bulk import.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.domain.employee_import import MatchField
from app.validators.import_row_validator import RowRejectedError
from db.models.department import Department, JobGrade
from db.models.employee import Employee, EmployeeStatusLog, EmploymentStatus

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYEE_CODE_PREFIX = "y"
DEFAULT_EMPLOYEE_CODE_PAD_LENGTH = 3


class EmployeeConflictError(RowRejectedError):
    """
    Raised when an identifier is already held by a different employee.
    """


def _as_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError):
        return None


class EmployeeRepository:
    """
    SQLAlchemy-backed employee store. Each import row runs in its own
    transaction via ``row_transaction``.
    """

    def __init__(
        self,
        session: Session,
        *,
        code_prefix: str = DEFAULT_EMPLOYEE_CODE_PREFIX,
        code_pad_length: int = DEFAULT_EMPLOYEE_CODE_PAD_LENGTH,
    ) -> None:
        self._session = session
        self._code_prefix = code_prefix
        self._code_pad_length = max(1, code_pad_length)
        self._code_pattern = re.compile(rf"^{re.escape(code_prefix)}(\d+)$")

    @contextmanager
    def row_transaction(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_employee_id(self, match_field: MatchField, value: str) -> str | None:
        value = value.strip()
        if not value:
            return None

        if match_field is MatchField.ID:
            employee_id = _as_uuid(value)
            if employee_id is None:
                return None
            stmt = select(Employee.id).where(Employee.id == employee_id)
        elif match_field is MatchField.EMPLOYEE_CODE:
            stmt = select(Employee.id).where(Employee.employee_code == value)
        elif match_field is MatchField.EMAIL:
            stmt = select(Employee.id).where(func.lower(Employee.email) == value.lower())
        elif match_field is MatchField.PHONE:
            stmt = select(Employee.id).where(Employee.phone == value)
        else:
            raise ValueError(f"Unsupported match field: {match_field!r}")

        found = self._session.scalars(stmt.limit(1)).first()
        return str(found) if found is not None else None

    def find_department_id(
        self,
        *,
        code: str | None = None,
        department_id: str | None = None,
    ) -> str | None:
        if department_id:
            parsed = _as_uuid(department_id)
            if parsed is None:
                return None
            found = self._session.scalars(select(Department.id).where(Department.id == parsed)).first()
        elif code:
            found = self._session.scalars(
                select(Department.id).where(func.upper(Department.code) == code.strip().upper()).limit(1)
            ).first()
        else:
            return None
        return str(found) if found is not None else None

    def find_job_grade_id(
        self,
        *,
        code: str | None = None,
        job_grade_id: str | None = None,
    ) -> str | None:
        if job_grade_id:
            parsed = _as_uuid(job_grade_id)
            if parsed is None:
                return None
            found = self._session.scalars(select(JobGrade.id).where(JobGrade.id == parsed)).first()
        elif code:
            found = self._session.scalars(
                select(JobGrade.id).where(func.upper(JobGrade.code) == code.strip().upper()).limit(1)
            ).first()
        else:
            return None
        return str(found) if found is not None else None

    def next_employee_code(self) -> str:
        """
        Next free sequential code, e.g. ``y001``, ``y002``.
        """

        codes = self._session.scalars(
            select(Employee.employee_code).where(Employee.employee_code.like(f"{self._code_prefix}%"))
        ).all()
        taken = {code for code in codes if code}
        counter = 0
        for code in taken:
            match = self._code_pattern.match(code)
            if match:
                counter = max(counter, int(match.group(1)))

        counter = max(counter + 1, 1)
        while True:
            candidate = f"{self._code_prefix}{counter:0{self._code_pad_length}d}"
            if candidate not in taken:
                return candidate
            counter += 1

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_employee(self, values: Mapping[str, Any]) -> str:
        self._ensure_unique(values, exclude_id=None)

        employee = Employee(
            employee_code=values.get("employee_code"),
            first_name=values["first_name"],
            last_name=values["last_name"],
            display_name=values.get("display_name"),
            email=values.get("email"),
            phone=values.get("phone"),
            password_hash=values.get("password_hash"),
            department=values.get("department"),
            department_id=_as_uuid(values["department_id"]) if values.get("department_id") else None,
            job_title=values.get("job_title"),
            job_grade_id=_as_uuid(values["job_grade_id"]) if values.get("job_grade_id") else None,
            national_id=values.get("national_id"),
            gender=values.get("gender"),
            employment_status=values.get("employment_status", EmploymentStatus.ACTIVE),
            hire_date=values.get("hire_date"),
            termination_date=values.get("termination_date"),
            custom_fields=dict(values.get("custom_fields") or {}),
            is_active=values.get("employment_status", EmploymentStatus.ACTIVE) is not EmploymentStatus.TERMINATED,
        )
        self._session.add(employee)
        self._session.flush()
        logger.debug("Created employee id=%s code=%r", employee.id, employee.employee_code)
        return str(employee.id)

    def update_employee(
        self,
        employee_id: str,
        values: Mapping[str, Any],
        *,
        status_note: str | None = None,
    ) -> None:
        employee = self._session.get(Employee, _as_uuid(employee_id))
        if employee is None:
            raise RowRejectedError("employee_not_found", f"Employee {employee_id} no longer exists.")

        self._ensure_unique(values, exclude_id=employee.id)

        for column, value in values.items():
            if column == "custom_fields":
                employee.custom_fields = {**(employee.custom_fields or {}), **value}
            elif column == "employment_status":
                self._apply_status(employee, value, status_note)
            elif column in ("department_id", "job_grade_id"):
                setattr(employee, column, _as_uuid(value))
            else:
                setattr(employee, column, value)

        self._session.flush()

    def _apply_status(
        self,
        employee: Employee,
        status: EmploymentStatus,
        note: str | None,
    ) -> None:
        previous = employee.employment_status
        if previous != status:
            self._session.add(
                EmployeeStatusLog(
                    employee_id=employee.id,
                    previous_status=EmploymentStatus(previous).value,
                    next_status=status.value,
                    note=note,
                )
            )
        employee.employment_status = status
        if status is EmploymentStatus.TERMINATED:
            employee.is_active = False
        elif status is EmploymentStatus.ACTIVE:
            employee.is_active = True

    def _ensure_unique(self, values: Mapping[str, Any], *, exclude_id: uuid.UUID | None) -> None:
        checks = (
            (MatchField.EMAIL, "email_exists", "Email is already used by another employee."),
            (MatchField.PHONE, "phone_exists", "Phone number is already used by another employee."),
            (MatchField.EMPLOYEE_CODE, "employee_code_exists", "Employee code is already used by another employee."),
        )
        for match_field, code, message in checks:
            value = values.get(match_field.value)
            if not value:
                continue
            holder = self.find_employee_id(match_field, value)
            if holder is not None and (exclude_id is None or holder != str(exclude_id)):
                raise EmployeeConflictError(code, message)

"""
tests/conftest.py

Shared fixtures: an in-memory employee store standing in for the database.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import pytest

from app.domain.employee_import import EmploymentStatus, MatchField
from app.services.employee_import_service import EmployeeImportService
from app.validators.import_row_validator import RowRejectedError


class FakeEmployeeStore:
    """
    Dict-backed store with per-row snapshot rollback, mirroring the
    repository's lookup and uniqueness rules.
    """

    def __init__(self) -> None:
        self.employees: dict[str, dict[str, Any]] = {}
        self.departments: dict[str, str] = {}
        self.job_grades: dict[str, str] = {}
        self.status_logs: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_on_create: Exception | None = None
        self._next_id = 1

    def add(self, **values: Any) -> str:
        employee_id = f"emp-{self._next_id}"
        self._next_id += 1
        values.setdefault("employment_status", EmploymentStatus.ACTIVE)
        self.employees[employee_id] = {"id": employee_id, "custom_fields": {}, **values}
        return employee_id

    @contextmanager
    def row_transaction(self) -> Iterator[None]:
        self.calls.append("row_transaction")
        snapshot = (copy.deepcopy(self.employees), list(self.status_logs), self._next_id)
        try:
            yield
        except Exception:
            self.employees, self.status_logs, self._next_id = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    def find_employee_id(self, match_field: MatchField, value: str) -> str | None:
        self.calls.append(f"find:{match_field.value}")
        for employee_id, employee in self.employees.items():
            current = employee_id if match_field is MatchField.ID else employee.get(match_field.value)
            if current is None:
                continue
            if match_field is MatchField.EMAIL:
                if current.lower() == value.lower():
                    return employee_id
            elif current == value:
                return employee_id
        return None

    def find_department_id(self, *, code: str | None = None, department_id: str | None = None) -> str | None:
        if department_id:
            return department_id if department_id in self.departments.values() else None
        return self.departments.get((code or "").upper())

    def find_job_grade_id(self, *, code: str | None = None, job_grade_id: str | None = None) -> str | None:
        if job_grade_id:
            return job_grade_id if job_grade_id in self.job_grades.values() else None
        return self.job_grades.get((code or "").upper())

    def next_employee_code(self) -> str:
        taken = {employee.get("employee_code") for employee in self.employees.values()}
        counter = 1
        while f"y{counter:03d}" in taken:
            counter += 1
        return f"y{counter:03d}"

    def create_employee(self, values: Mapping[str, Any]) -> str:
        self.calls.append("create")
        if self.fail_on_create is not None:
            raise self.fail_on_create
        self._ensure_unique(values, exclude_id=None)
        return self.add(**values)

    def update_employee(
        self,
        employee_id: str,
        values: Mapping[str, Any],
        *,
        status_note: str | None = None,
    ) -> None:
        self.calls.append("update")
        self._ensure_unique(values, exclude_id=employee_id)
        employee = self.employees[employee_id]
        for column, value in values.items():
            if column == "custom_fields":
                employee["custom_fields"] = {**employee["custom_fields"], **value}
            elif column == "employment_status":
                if employee["employment_status"] != value:
                    self.status_logs.append(
                        {
                            "employee_id": employee_id,
                            "previous_status": employee["employment_status"],
                            "next_status": value,
                            "note": status_note,
                        }
                    )
                employee["employment_status"] = value
            else:
                employee[column] = value

    def _ensure_unique(self, values: Mapping[str, Any], *, exclude_id: str | None) -> None:
        for match_field, code in (
            (MatchField.EMAIL, "email_exists"),
            (MatchField.PHONE, "phone_exists"),
            (MatchField.EMPLOYEE_CODE, "employee_code_exists"),
        ):
            value = values.get(match_field.value)
            if not value:
                continue
            holder = self.find_employee_id(match_field, value)
            if holder is not None and holder != exclude_id:
                raise RowRejectedError(code, f"{match_field.value} is already used by another employee.")


@pytest.fixture()
def fake_store() -> FakeEmployeeStore:
    return FakeEmployeeStore()


@pytest.fixture()
def import_service() -> EmployeeImportService:
    """Service with a readable, deterministic password hasher."""
    return EmployeeImportService(
        max_rows=500,
        log_row_errors=False,
        password_hasher=lambda password: f"hashed:{password}",
    )

"""
app/domain/employee_import.py

Domain models used by the employee bulk import pipeline.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from typing import Any, Sequence

from db.models.employee import EmployeeGender, EmploymentStatus

__all__ = [
    "DEFAULT_MATCH_ORDER",
    "EmployeeGender",
    "EmploymentStatus",
    "ImportOptions",
    "ImportOutcome",
    "ImportRow",
    "ImportRowError",
    "MatchField",
    "NormalizationResult",
    "parse_match_fields",
]


class MatchField(str, enum.Enum):
    ID = "id"
    EMPLOYEE_CODE = "employee_code"
    EMAIL = "email"
    PHONE = "phone"


# Identifier priority used when neither the row nor the options override it.
DEFAULT_MATCH_ORDER: tuple[MatchField, ...] = (
    MatchField.ID,
    MatchField.EMPLOYEE_CODE,
    MatchField.EMAIL,
    MatchField.PHONE,
)

_MATCH_FIELD_TOKENS: dict[str, MatchField] = {
    "id": MatchField.ID,
    "employee_code": MatchField.EMPLOYEE_CODE,
    "employeecode": MatchField.EMPLOYEE_CODE,
    "code": MatchField.EMPLOYEE_CODE,
    "email": MatchField.EMAIL,
    "phone": MatchField.PHONE,
}


def parse_match_fields(values: Sequence[Any] | None) -> tuple[MatchField, ...]:
    """
    Keep the recognized identifiers from ``values``, in order, without repeats.
    """

    if not values or isinstance(values, str):
        return ()
    parsed: list[MatchField] = []
    for value in values:
        if isinstance(value, MatchField):
            match_field = value
        else:
            match_field = _MATCH_FIELD_TOKENS.get(str(value).strip().lower())
        if match_field is not None and match_field not in parsed:
            parsed.append(match_field)
    return tuple(parsed)


# Fields that carry import mechanics rather than employee data.
_CONTROL_FIELDS = frozenset({"match_by", "status_change_note"})


@dataclass(frozen=True)
class ImportRow:
    """
    Canonical, sparse employee import row. None means "not supplied".
    """

    id: str | None = None
    employee_code: str | None = None
    email: str | None = None
    phone: str | None = None
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    department: str | None = None
    department_code: str | None = None
    department_id: str | None = None
    job_title: str | None = None
    job_grade_code: str | None = None
    job_grade_id: str | None = None
    employment_status: EmploymentStatus | None = None
    hire_date: str | None = None
    termination_date: str | None = None
    national_id: str | None = None
    gender: str | None = None
    initial_password: str | None = None
    custom_fields: dict[str, str] = field(default_factory=dict)
    status_change_note: str | None = None
    match_by: tuple[MatchField, ...] = ()

    def present_fields(self) -> dict[str, Any]:
        """
        Return the employee data fields this row actually supplies.
        """

        present: dict[str, Any] = {}
        for item in fields(self):
            if item.name in _CONTROL_FIELDS:
                continue
            value = getattr(self, item.name)
            if item.name == "custom_fields":
                if value:
                    present[item.name] = dict(value)
                continue
            if value is not None and value != "":
                present[item.name] = value
        return present

    def has_values(self) -> bool:
        return bool(self.present_fields())

    def identifier_value(self, match_field: MatchField) -> str | None:
        value = getattr(self, match_field.value)
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    def identifier_for(self, order: Sequence[MatchField] = DEFAULT_MATCH_ORDER) -> str | None:
        """
        Best-available identifier string, used to label per-row errors.
        """

        for match_field in (*order, *DEFAULT_MATCH_ORDER):
            value = self.identifier_value(match_field)
            if value:
                return value
        return None


@dataclass(frozen=True)
class NormalizationResult:
    """
    Output of the ingestion normalizer.
    """

    rows: list[ImportRow]
    recognized_headers: list[str] = field(default_factory=list)
    ignored_headers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ImportOptions:
    """
    Caller-controlled reconciliation behaviour.
    """

    upsert: bool = True
    match_by: tuple[MatchField, ...] | None = None
    default_status: EmploymentStatus | None = None
    default_initial_password: str | None = None
    use_employee_code_as_password: bool = False
    stop_on_error: bool = False


@dataclass(frozen=True)
class ImportRowError:
    """
    One per-row failure. index is the zero-based position in the submitted input.
    """

    index: int
    message: str
    identifier: str | None = None
    code: str | None = None


@dataclass
class ImportOutcome:
    """
    Aggregate result of one reconciliation pass.
    """

    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": [
                {
                    "index": error.index,
                    "message": error.message,
                    "identifier": error.identifier,
                    "code": error.code,
                }
                for error in self.errors
            ],
        }

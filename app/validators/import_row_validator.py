"""
app/validators/import_row_validator.py

Row-level parsing for employee import: dates, gender, and names.
"""

from __future__ import annotations

from datetime import date, datetime

from db.models.employee import EmployeeGender

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
)

_GENDER_TOKENS: dict[str, EmployeeGender] = {
    "male": EmployeeGender.MALE,
    "m": EmployeeGender.MALE,
    "man": EmployeeGender.MALE,
    "男": EmployeeGender.MALE,
    "female": EmployeeGender.FEMALE,
    "f": EmployeeGender.FEMALE,
    "woman": EmployeeGender.FEMALE,
    "女": EmployeeGender.FEMALE,
    "other": EmployeeGender.OTHER,
    "o": EmployeeGender.OTHER,
    "x": EmployeeGender.OTHER,
    "其他": EmployeeGender.OTHER,
    "未知": EmployeeGender.OTHER,
    "保密": EmployeeGender.OTHER,
}


class RowRejectedError(ValueError):
    """
    Raised when one import row cannot be applied. Never aborts the batch.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ImportRowValidator:
    """
    Parses free-text row values into the types the employee table stores.
    """

    def parse_date(self, value: str | None, *, column: str) -> date | None:
        if value is None or not str(value).strip():
            return None

        raw = str(value).strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date()
            except ValueError:
                continue

        normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            return datetime.fromisoformat(normalized).date()
        except ValueError:
            pass

        raise RowRejectedError(
            "invalid_date_format",
            f"{column} must be a date in YYYY-MM-DD format, got {raw!r}.",
        )

    def parse_gender(self, value: str | None) -> EmployeeGender | None:
        if value is None:
            return None
        token = str(value).strip().lower()
        if not token:
            return None
        return _GENDER_TOKENS.get(token, EmployeeGender.OTHER)

    @staticmethod
    def split_full_name(full_name: str) -> tuple[str, str]:
        """
        Split a display name into (first_name, last_name).

        Names without spaces are treated as Chinese: family name is the first
        character. Western names use the last token as the family name.
        """

        name = full_name.strip()
        if " " in name:
            given, _, family = name.rpartition(" ")
            return given.strip() or family, family
        if len(name) == 1:
            return name, name
        return name[1:], name[0]

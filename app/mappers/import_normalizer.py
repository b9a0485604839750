"""
app/mappers/import_normalizer.py

Ingestion normalizer for employee bulk import.

Turns a CSV upload (arbitrary, bilingual header names) or a pasted JSON
array into canonical ImportRow values, and reports which source headers were
recognized and which were ignored.

Header classification is per field, not per column: a status column whose
text cannot be coerced on one row is recorded as ignored for that row. Both
sets accumulate across rows, so a header recognized on any row is listed in
``recognized_headers`` even if it also appears in ``ignored_headers``.
"""

from __future__ import annotations

import csv
import enum
import io
import json
import logging
from typing import IO, Any, Mapping, Sequence

from app.domain.employee_import import (
    EmploymentStatus,
    ImportRow,
    NormalizationResult,
    parse_match_fields,
)
from app.validators.import_payload_validator import ImportPayloadValidator, ImportStructureError
from app.validators.import_row_validator import RowRejectedError

logger = logging.getLogger(__name__)

CUSTOM_FIELD_PREFIX = "custom."

# Plain-text canonical fields a source column can be mapped onto.
TEXT_FIELDS: tuple[str, ...] = (
    "id",
    "employee_code",
    "email",
    "phone",
    "display_name",
    "first_name",
    "last_name",
    "department",
    "department_code",
    "department_id",
    "job_title",
    "job_grade_code",
    "job_grade_id",
    "hire_date",
    "termination_date",
    "national_id",
    "gender",
    "initial_password",
    "status_change_note",
)

STATUS_FIELD = "employment_status"
CUSTOM_FIELDS_FIELD = "custom_fields"
MATCH_BY_FIELD = "match_by"

DEFAULT_HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("employee id", "internal id", "uuid"),
    "employee_code": ("code", "employee no", "employee number", "staff code", "工号", "员工编号", "员工编码", "编号"),
    "email": ("e-mail", "mail", "email address", "邮箱", "电子邮箱", "邮件"),
    "phone": ("mobile", "telephone", "phone number", "tel", "手机号", "手机", "电话", "联系电话"),
    "display_name": ("name", "full name", "employee name", "姓名", "员工姓名", "名字"),
    "first_name": ("given name", "名"),
    "last_name": ("surname", "family name", "姓"),
    "department": ("dept", "department name", "部门", "所属部门", "部门名称"),
    "department_code": ("dept code", "部门编码", "部门代码"),
    "department_id": ("dept id", "部门id"),
    "job_title": ("title", "position", "role", "职位", "岗位", "职务"),
    "job_grade_code": ("grade code", "level code", "职级编码", "职级代码"),
    "job_grade_id": ("grade id", "职级id"),
    "employment_status": ("status", "employee status", "employment state", "员工状态", "状态", "在职状态"),
    "hire_date": ("start date", "join date", "joined", "入职日期", "入职时间"),
    "termination_date": ("end date", "leave date", "exit date", "离职日期", "离职时间"),
    "national_id": ("id card", "id number", "身份证", "身份证号"),
    "gender": ("sex", "性别"),
    "initial_password": ("password", "初始密码", "密码"),
    "status_change_note": ("note", "remark", "备注"),
}

_STATUS_TOKENS: dict[str, EmploymentStatus] = {
    "active": EmploymentStatus.ACTIVE,
    "在职": EmploymentStatus.ACTIVE,
    "on_leave": EmploymentStatus.ON_LEAVE,
    "on leave": EmploymentStatus.ON_LEAVE,
    "leave": EmploymentStatus.ON_LEAVE,
    "休假": EmploymentStatus.ON_LEAVE,
    "terminated": EmploymentStatus.TERMINATED,
    "inactive": EmploymentStatus.TERMINATED,
    "离职": EmploymentStatus.TERMINATED,
}


def normalize_key(key: str) -> str:
    """
    Normalize a source column or JSON key for alias lookup.
    """

    return key.strip().lower()


def normalize_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        value = value.value
    return str(value).strip()


def coerce_employment_status(value: Any) -> EmploymentStatus | None:
    """
    Map English or Chinese status text onto EmploymentStatus, or None.
    """

    if isinstance(value, EmploymentStatus):
        return value
    return _STATUS_TOKENS.get(normalize_value(value).lower())


def build_alias_lookup(aliases: Mapping[str, Sequence[str]]) -> dict[str, str]:
    """
    Build normalized-key -> canonical-field lookup.

    Every canonical field is also reachable by its own name in snake_case,
    with spaces, and squashed (so JSON camelCase keys like ``displayName``
    resolve once lower-cased).
    """

    lookup: dict[str, str] = {}
    canonical_fields = (*TEXT_FIELDS, STATUS_FIELD, CUSTOM_FIELDS_FIELD, MATCH_BY_FIELD)
    for canonical in canonical_fields:
        for variant in (canonical, canonical.replace("_", " "), canonical.replace("_", "")):
            lookup.setdefault(normalize_key(variant), canonical)
    for canonical, values in aliases.items():
        for alias in values:
            lookup.setdefault(normalize_key(alias), canonical)
    return lookup


class _HeaderTracker:
    """
    Ordered recognized/ignored header sets.
    """

    def __init__(self) -> None:
        self.recognized: dict[str, None] = {}
        self.ignored: dict[str, None] = {}

    def recognize(self, header: str) -> None:
        self.recognized.setdefault(header, None)

    def ignore(self, header: str) -> None:
        self.ignored.setdefault(header, None)


class ImportNormalizer:
    """
    Normalizes CSV or JSON sources into canonical ImportRow values.
    """

    def __init__(
        self,
        *,
        aliases: Mapping[str, Sequence[str]] | None = None,
        payload_validator: ImportPayloadValidator | None = None,
    ) -> None:
        self._lookup = build_alias_lookup(aliases or DEFAULT_HEADER_ALIASES)
        self._payload_validator = payload_validator or ImportPayloadValidator()

    def resolve_field(self, key: str) -> str | None:
        return self._lookup.get(normalize_key(key))

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def normalize_csv(self, source: bytes | str | IO[bytes] | IO[str]) -> NormalizationResult:
        """
        Parse CSV text with a required header row into canonical rows.

        Ragged rows are tolerated. Any other structural problem raises
        ImportStructureError before a single row is returned.
        """

        text = self._read_text(source)
        if "\x00" in text:
            raise ImportStructureError(code="malformed_csv", message="Invalid CSV format: NUL byte in input.")
        reader = csv.DictReader(io.StringIO(text, newline=""), strict=True)
        tracker = _HeaderTracker()
        rows: list[ImportRow] = []

        try:
            headers = reader.fieldnames
            if not headers or not any(header and header.strip() for header in headers):
                raise ImportStructureError(code="missing_header", message="CSV header row is missing.")

            for raw_row in reader:
                row = self._normalize_record(raw_row, tracker=tracker)
                if row is not None:
                    rows.append(row)
        except csv.Error as exc:
            raise ImportStructureError(
                code="malformed_csv",
                message=f"Invalid CSV format (line {reader.line_num}): {exc}",
            ) from exc

        logger.info(
            "Normalized CSV import rows=%d recognized=%d ignored=%d",
            len(rows),
            len(tracker.recognized),
            len(tracker.ignored),
        )
        return NormalizationResult(
            rows=rows,
            recognized_headers=list(tracker.recognized),
            ignored_headers=list(tracker.ignored),
        )

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def normalize_json(self, source: str | bytes | list[Any]) -> NormalizationResult:
        """
        Normalize a pasted JSON array (or already-parsed list) of objects.
        """

        if isinstance(source, (str, bytes)):
            try:
                payload = json.loads(source)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise ImportStructureError(
                    code="malformed_json",
                    message=f"Invalid JSON: {exc}",
                ) from exc
        else:
            payload = source

        if not isinstance(payload, list):
            raise ImportStructureError(code="payload_invalid", message="JSON import must be an array of objects.")
        items = self._payload_validator.validate(payload)

        tracker = _HeaderTracker()
        rows = [
            row
            for row in (self._normalize_record(item, tracker=tracker) for item in items)
            if row is not None
        ]
        return NormalizationResult(
            rows=rows,
            recognized_headers=list(tracker.recognized),
            ignored_headers=list(tracker.ignored),
        )

    def row_from_mapping(self, item: Mapping[str, Any]) -> ImportRow:
        """
        Build one ImportRow from a JSON object submitted for reconciliation.

        An all-empty object still yields a blank row so input indices are kept.
        """

        return self._normalize_record(item, tracker=_HeaderTracker()) or ImportRow()

    def check_status(self, item: Mapping[str, Any]) -> None:
        """
        Raise RowRejectedError when ``item`` carries status text that cannot
        be coerced. Normalization would silently drop it instead.
        """

        for key, value in item.items():
            if not isinstance(key, str) or self.resolve_field(key) != STATUS_FIELD:
                continue
            raw = normalize_value(value)
            if raw and coerce_employment_status(raw) is None:
                raise RowRejectedError(
                    "invalid_status",
                    f"Unsupported employment status {raw!r}. Allowed values: active, on_leave, terminated.",
                )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _normalize_record(
        self,
        record: Mapping[Any, Any],
        *,
        tracker: _HeaderTracker,
    ) -> ImportRow | None:
        assigned: dict[str, Any] = {}
        custom_fields: dict[str, str] = {}

        for header, raw_value in record.items():
            # csv.DictReader files surplus cells of ragged rows under a None key.
            if not isinstance(header, str):
                continue

            key = normalize_key(header)
            if key.startswith(CUSTOM_FIELD_PREFIX):
                value = normalize_value(raw_value)
                custom_key = key[len(CUSTOM_FIELD_PREFIX):].strip()
                if not value:
                    continue
                if custom_key:
                    custom_fields[custom_key] = value
                    tracker.recognize(header)
                else:
                    tracker.ignore(header)
                continue

            canonical = self._lookup.get(key)
            if canonical == CUSTOM_FIELDS_FIELD:
                if self._merge_custom_fields(raw_value, custom_fields):
                    tracker.recognize(header)
                elif raw_value not in (None, "", {}):
                    tracker.ignore(header)
                continue
            if canonical == MATCH_BY_FIELD:
                match_by = parse_match_fields(raw_value if isinstance(raw_value, list) else None)
                if match_by:
                    assigned[MATCH_BY_FIELD] = match_by
                    tracker.recognize(header)
                elif raw_value not in (None, "", []):
                    tracker.ignore(header)
                continue

            if isinstance(raw_value, (Mapping, list)):
                if raw_value:
                    tracker.ignore(header)
                continue
            value = normalize_value(raw_value)
            if not value:
                continue

            if canonical is None:
                tracker.ignore(header)
                continue

            if canonical == STATUS_FIELD:
                status = coerce_employment_status(value)
                if status is None:
                    tracker.ignore(header)
                    continue
                assigned[STATUS_FIELD] = status
                tracker.recognize(header)
                continue

            assigned[canonical] = value
            tracker.recognize(header)

        if custom_fields:
            assigned[CUSTOM_FIELDS_FIELD] = custom_fields
        row = ImportRow(**assigned)
        return row if row.has_values() else None

    @staticmethod
    def _merge_custom_fields(raw_value: Any, custom_fields: dict[str, str]) -> bool:
        if not isinstance(raw_value, Mapping):
            return False
        merged = False
        for key, value in raw_value.items():
            custom_key = normalize_value(key)
            custom_value = normalize_value(value)
            if custom_key and custom_value:
                custom_fields[custom_key] = custom_value
                merged = True
        return merged

    @staticmethod
    def _read_text(source: bytes | str | IO[bytes] | IO[str]) -> str:
        if hasattr(source, "read"):
            source = source.read()
        if isinstance(source, bytes):
            try:
                return source.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                raise ImportStructureError(code="invalid_encoding", message="CSV must be UTF-8 encoded.") from exc
        return source.lstrip("\ufeff")

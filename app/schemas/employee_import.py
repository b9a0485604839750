"""
app/schemas/employee_import.py

Request and response schemas for employee bulk import endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.employee_import import (
    EmploymentStatus,
    ImportOutcome,
    ImportRow,
    MatchField,
    NormalizationResult,
    parse_match_fields,
)


class ImportOptionsPayload(BaseModel):
    """
    Caller-supplied import options. Accepts camelCase or snake_case keys.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    upsert: bool | None = None
    match_by: list[MatchField] | None = Field(default=None, alias="matchBy")
    default_status: EmploymentStatus | None = Field(default=None, alias="defaultStatus")
    default_initial_password: str | None = Field(default=None, alias="defaultInitialPassword")
    use_employee_code_as_password: bool | None = Field(default=None, alias="useEmployeeCodeAsPassword")
    stop_on_error: bool | None = Field(default=None, alias="stopOnError")

    @field_validator("match_by", mode="before")
    @classmethod
    def _parse_match_by(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, list):
            raise ValueError("matchBy must be a list of identifiers.")
        parsed = parse_match_fields(value)
        if not parsed:
            raise ValueError("matchBy must name at least one of: id, employee_code, email, phone.")
        return list(parsed)

    @field_validator("default_initial_password")
    @classmethod
    def _strip_password(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    def overrides(self) -> dict[str, Any]:
        """
        Option values the caller actually set, ready for ``build_options``.
        """

        values = self.model_dump(exclude_none=True)
        if "match_by" in values:
            values["match_by"] = tuple(self.match_by or ())
        return values


class ImportRowErrorResponse(BaseModel):
    """
    API response model for one failed import row.
    """

    index: int = Field(..., ge=0)
    message: str
    identifier: str | None = None
    code: str | None = None


class ImportOutcomeResponse(BaseModel):
    """
    API response model for an import run.
    """

    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: ImportOutcome) -> "ImportOutcomeResponse":
        return cls.model_validate(outcome.to_dict())


class CSVImportOutcomeResponse(ImportOutcomeResponse):
    """
    Import outcome plus the header classification of the uploaded CSV.
    """

    recognized_headers: list[str] = Field(default_factory=list)
    ignored_headers: list[str] = Field(default_factory=list)


class ImportRowPreview(BaseModel):
    """
    One normalized row, only the fields the source supplied.
    """

    fields: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row: ImportRow) -> "ImportRowPreview":
        fields = row.present_fields()
        if row.status_change_note:
            fields["status_change_note"] = row.status_change_note
        if row.match_by:
            fields["match_by"] = [match_field.value for match_field in row.match_by]
        if isinstance(fields.get("employment_status"), EmploymentStatus):
            fields["employment_status"] = fields["employment_status"].value
        fields.pop("initial_password", None)
        return cls(fields=fields)


class ImportPreviewResponse(BaseModel):
    """
    API response model for a normalization-only preview.
    """

    row_count: int = Field(..., ge=0)
    rows: list[ImportRowPreview] = Field(default_factory=list)
    recognized_headers: list[str] = Field(default_factory=list)
    ignored_headers: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: NormalizationResult) -> "ImportPreviewResponse":
        return cls(
            row_count=len(result.rows),
            rows=[ImportRowPreview.from_row(row) for row in result.rows],
            recognized_headers=result.recognized_headers,
            ignored_headers=result.ignored_headers,
        )


def options_from_payload(payload: Any) -> ImportOptionsPayload:
    """
    Extract the optional ``options`` object from a JSON import body.
    """

    if isinstance(payload, dict) and isinstance(payload.get("options"), dict):
        return ImportOptionsPayload.model_validate(payload["options"])
    return ImportOptionsPayload()
